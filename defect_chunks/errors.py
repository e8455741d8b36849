"""
Exceptions raised while building a data set.
"""

from dataclasses import dataclass


class DataSetBuilderError(Exception):
    """Base exception for all Defect Chunks errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ExtractionError(DataSetBuilderError):
    """History, diff or author data could not be supplied for an entity"""


class ComputationInvariantError(DataSetBuilderError):
    """A denominator that real history never produces turned out to be zero"""


@dataclass(frozen=True)
class EntityFailure:
    """One failure recorded while the corpus was processed"""
    entity: str
    error: DataSetBuilderError
    chunk_index: int | None = None

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    def __str__(self) -> str:
        where = self.entity if self.chunk_index is None else f"{self.entity}[chunk {self.chunk_index}]"
        return f"{where}: {self.kind}: {self.error}"
