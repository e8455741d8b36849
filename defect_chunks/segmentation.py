"""
Splitting a file's history into fix-delimited chunks.
"""

from typing import Sequence

from .config import BASELINES, FIRST_CHUNK_BASELINE
from .models import Chunk, RepoHistory, Version


class ChunkSegmenter:
    """
    Split a version list into chunks ending at (and including) fix commits.

    Each chunk records the time of the fix that closed the previous chunk.
    The chunk before an entity's first fix is measured from the earliest
    commit of the repository, or of the entity itself with baseline='entity'.
    """

    def __init__(self, history: RepoHistory, baseline: str = FIRST_CHUNK_BASELINE):
        if baseline not in BASELINES:
            raise ValueError(f"Unknown baseline {baseline!r}, expected one of {BASELINES}")
        self.history = history
        self.baseline = baseline

    def _initial_fix_time(self, versions: Sequence[Version]) -> int:
        if self.baseline == 'entity':
            return self.history.get_commit_info(versions[0].commit_hash).time
        return self.history.first_commit_time

    def split(self, entity: str, versions: Sequence[Version]) -> list[Chunk]:
        if not versions:
            return []

        chunks = []
        current = []
        last_fix_time = self._initial_fix_time(versions)

        for version in versions:
            current.append(version)
            if self.history.is_fix_commit(version.commit_hash):
                chunks.append(Chunk(entity, tuple(current), True, last_fix_time))
                last_fix_time = self.history.get_commit_info(version.commit_hash).time
                current = []

        if current:
            chunks.append(Chunk(entity, tuple(current), False, last_fix_time))
        return chunks
