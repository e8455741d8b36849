"""
Records shared by extraction, segmentation and aggregation.

Everything here is produced once by the history extractor and treated as
read-only afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .errors import ExtractionError


@dataclass(frozen=True)
class Version:
    """State of one tracked file as produced by one commit"""
    entity: str
    commit_hash: str
    index: int
    # Structural change tally against the previous state of the file
    changes: Mapping[str, int] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class CommitInfo:
    """Per-commit totals over every tracked file the commit touched"""
    commit_hash: str
    author: str
    time: int
    num_changes: int = 0
    num_entities: int = 0


@dataclass(frozen=True)
class AuthorInfo:
    """Per-author totals over the whole mined history"""
    author: str
    num_commits: int = 0
    num_changes: int = 0


@dataclass(frozen=True)
class Chunk:
    """Consecutive versions of one file between two fix boundaries"""
    entity: str
    versions: tuple[Version, ...]
    is_fixed: bool
    last_fix_time: int

    def __len__(self) -> int:
        return len(self.versions)


@dataclass(frozen=True)
class FeatureVector:
    """One emitted row: attribute values after one more commit in a group"""
    entity: str
    commit_hash: str
    values: Mapping[str, float] = field(hash=False)

    def to_dict(self) -> dict:
        """Convert to a flat dictionary"""
        return {'entity': self.entity, 'commit_hash': self.commit_hash, **self.values}


class RepoHistory:
    """
    Read-only index over a mined repository.

    Built once before any chunk is processed and shared by every worker.
    Lookups of unknown commits or authors raise ExtractionError.
    """

    def __init__(
        self,
        versions: Mapping[str, list[Version]],
        commits: Mapping[str, CommitInfo],
        authors: Mapping[str, AuthorInfo],
        fixes: set[str] | frozenset[str] = frozenset(),
        failures: Mapping[str, ExtractionError] | None = None,
    ):
        self._versions = MappingProxyType({e: tuple(v) for e, v in versions.items()})
        self.commits = MappingProxyType(dict(commits))
        self.authors = MappingProxyType(dict(authors))
        self.fixes = frozenset(fixes)
        self.failures = MappingProxyType(dict(failures or {}))
        self.first_commit_time = min((c.time for c in self.commits.values()), default=0)

    def entities(self) -> list[str]:
        """Tracked files in path order, including those whose extraction failed"""
        return sorted(set(self._versions) | set(self.failures))

    def list_versions(self, entity: str) -> tuple[Version, ...]:
        if entity in self.failures:
            raise self.failures[entity]
        try:
            return self._versions[entity]
        except KeyError:
            raise ExtractionError("No history for entity", {'entity': entity}) from None

    def is_fix_commit(self, commit_hash: str) -> bool:
        return commit_hash in self.fixes

    def get_commit_info(self, commit_hash: str) -> CommitInfo:
        try:
            return self.commits[commit_hash]
        except KeyError:
            raise ExtractionError("Missing commit info", {'commit': commit_hash}) from None

    def get_author_info(self, author: str) -> AuthorInfo:
        try:
            return self.authors[author]
        except KeyError:
            raise ExtractionError("Missing author info", {'author': author}) from None

    def __len__(self) -> int:
        return len(self._versions)
