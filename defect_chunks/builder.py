"""
Data set builder: segmenter + per-chunk processor + sink.
"""

from concurrent.futures import ThreadPoolExecutor

from .dataset import Dataset
from .errors import ComputationInvariantError, EntityFailure, ExtractionError
from .groups import ChunkProcessor, GroupFeatureAggregator
from .models import RepoHistory
from .segmentation import ChunkSegmenter


class GroupDataSetBuilder:
    """
    Build a labeled data set from a mined repository history.

    A failing entity or chunk never stops the rest of the corpus; failures
    are collected in `failures` and summarized once the build finishes.
    """

    def __init__(
        self,
        history: RepoHistory,
        processor: ChunkProcessor | None = None,
        segmenter: ChunkSegmenter | None = None,
    ):
        self.history = history
        self.processor = processor or GroupFeatureAggregator(history)
        self.segmenter = segmenter or ChunkSegmenter(history)
        self.failures = []

    def _process_entity(self, entity: str) -> tuple[list[dict], list[EntityFailure]]:
        """Rows and failures for one entity; rows are dropped if the entity aborts"""
        sink = Dataset(self.processor.schema())
        failures = []
        try:
            versions = self.history.list_versions(entity)
            chunks = self.segmenter.split(entity, versions)
            for index, chunk in enumerate(chunks):
                try:
                    vectors = self.processor.process_chunk(chunk)
                except ComputationInvariantError as e:
                    failures.append(EntityFailure(entity, e, index))
                    continue
                for vector in vectors:
                    sink.emit(vector, chunk.is_fixed)
        except ExtractionError as e:
            return [], failures + [EntityFailure(entity, e)]
        return sink.rows, failures

    def build(self, entities: list[str] | None = None, workers: int = 1) -> Dataset:
        if entities is None:
            entities = self.history.entities()
        print(f"  Aggregating {len(entities)} files...", flush=True)

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self._process_entity, entities))
        else:
            results = [self._process_entity(entity) for entity in entities]

        dataset = Dataset(self.processor.schema())
        for rows, failures in results:
            dataset.extend(rows)
            self.failures.extend(failures)

        buggy = sum(row[dataset.label_col] for row in dataset.rows)
        print(f"  Built: {len(dataset)} rows ({buggy} buggy, {len(dataset) - buggy} clean)")
        self.report_failures()
        return dataset

    def report_failures(self, limit: int = 10):
        if not self.failures:
            return
        by_kind = {}
        for failure in self.failures:
            by_kind[failure.kind] = by_kind.get(failure.kind, 0) + 1
        print(f"  Failures: {len(self.failures)} {by_kind}")
        for failure in self.failures[:limit]:
            print(f"    - {failure}")
        if len(self.failures) > limit:
            print(f"    ... {len(self.failures) - limit} more")
