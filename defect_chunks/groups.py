"""
Commit-group features.

Every emitted row describes a group of consecutive commits to one file,
starting right after a bug fix and growing one commit at a time up to the
whole chunk. Rows from a fix-terminated chunk are labeled buggy.
"""

import math
from dataclasses import dataclass, field

from .changes import ChangeCounter, version_changes
from .config import GROUP_FEATURE_COLS
from .errors import ComputationInvariantError
from .models import Chunk, FeatureVector, RepoHistory


class ChunkProcessor:
    """Per-chunk processing step plugged into the data set builder"""

    attributes: list[str] = []

    def schema(self) -> list[str]:
        """Attribute names of every vector this processor emits, in order"""
        return list(self.attributes)

    def process_chunk(self, chunk: Chunk) -> list[FeatureVector]:
        raise NotImplementedError


@dataclass
class GroupState:
    """Running sums for the chunk being processed"""
    chunk_counter: ChangeCounter
    authors: set = field(default_factory=set)
    total_changes: int = 0
    total_entities: int = 0
    total_author_commits: int = 0
    total_author_changes: int = 0
    change_ratio: float = 0.0
    num_changes: list = field(default_factory=list)
    num_changes_diffs_sum: int = 0


class GroupFeatureAggregator(ChunkProcessor):
    """Emit one feature vector per prefix of a chunk"""

    attributes = GROUP_FEATURE_COLS

    def __init__(self, history: RepoHistory, differ=version_changes):
        self.history = history
        self.differ = differ

    def process_chunk(self, chunk: Chunk) -> list[FeatureVector]:
        """
        Aggregate a chunk into len(chunk) vectors.

        Raises:
            ComputationInvariantError: a commit or the chunk so far has no changes
            ExtractionError: commit or author info is missing
        """
        state = GroupState(ChangeCounter(self.differ))
        version_counter = ChangeCounter(self.differ)
        vectors = []

        for version in chunk.versions:
            version_counter.reset().count_changes(version)
            state.chunk_counter.add(version_counter)

            commit = self.history.get_commit_info(version.commit_hash)
            author = self.history.get_author_info(commit.author)
            if commit.num_changes <= 0:
                raise ComputationInvariantError(
                    "Commit owning a version has no recorded changes",
                    {'entity': chunk.entity, 'commit': commit.commit_hash},
                )

            state.total_changes += commit.num_changes
            state.total_entities += commit.num_entities
            state.total_author_commits += author.num_commits
            state.total_author_changes += author.num_changes
            version_changes_count = version_counter.get_total_sum()
            state.change_ratio += version_changes_count / commit.num_changes

            # Pairwise absolute deviation against every earlier version
            for previous in state.num_changes:
                state.num_changes_diffs_sum += abs(previous - version_changes_count)
            state.num_changes.append(version_changes_count)

            state.authors.add(commit.author)
            num_commits = len(state.num_changes)

            chunk_total = state.chunk_counter.get_total_sum()
            if chunk_total == 0:
                raise ComputationInvariantError(
                    "Chunk has no changes so far, change dispersion is undefined",
                    {'entity': chunk.entity, 'commit': commit.commit_hash, 'prefix': num_commits},
                )

            values = {
                'num_commits': num_commits,
                'num_authors': len(state.authors),
                'avg_changes': state.total_changes / num_commits,
                'avg_entities': state.total_entities / num_commits,
                'avg_author_commits': state.total_author_commits / num_commits,
                'avg_author_changes': state.total_author_changes / num_commits,
                'avg_change_ratio': state.change_ratio / num_commits,
                'change_gini': state.num_changes_diffs_sum / (num_commits * chunk_total),
                'time_since_last_fix': commit.time - chunk.last_fix_time,
            }
            for name, value in values.items():
                if not math.isfinite(value):
                    raise ComputationInvariantError(
                        "Non-finite feature value", {'attribute': name, 'entity': chunk.entity}
                    )
            vectors.append(FeatureVector(chunk.entity, commit.commit_hash, values))

        return vectors
