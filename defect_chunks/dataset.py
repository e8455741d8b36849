"""
In-memory data set that receives labeled feature vectors.
"""

from pathlib import Path

import pandas as pd

from .config import LABEL_COL, META_COLS
from .models import FeatureVector


class Dataset:
    """Accumulates rows with a fixed attribute schema and a binary label"""

    def __init__(self, attributes: list[str], label_col: str = LABEL_COL):
        self.attributes = list(attributes)
        self.label_col = label_col
        self.rows = []

    @property
    def columns(self) -> list[str]:
        return META_COLS + self.attributes + [self.label_col]

    def make_row(self, vector: FeatureVector, label: bool) -> dict:
        """Validate a vector against the schema and flatten it"""
        missing = [a for a in self.attributes if a not in vector.values]
        extra = [a for a in vector.values if a not in self.attributes]
        if missing or extra:
            raise ValueError(f"Vector does not match schema: missing={missing}, extra={extra}")
        row = {'entity': vector.entity, 'commit_hash': vector.commit_hash}
        row.update((a, vector.values[a]) for a in self.attributes)
        row[self.label_col] = 1 if label else 0
        return row

    def emit(self, vector: FeatureVector, label: bool):
        self.rows.append(self.make_row(vector, label))

    def extend(self, rows: list[dict]):
        self.rows.extend(rows)

    def __len__(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns)

    def to_csv(self, path: str | Path) -> Path:
        path = Path(path)
        self.to_frame().to_csv(path, index=False)
        return path
