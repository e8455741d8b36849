"""
Defect Chunks - Commit-Group Features from Code History
=======================================================

Mines a repository's history into a labeled data set for defect prediction.
Each file's versions are split into chunks at bug-fix commits, and every
prefix of a chunk becomes one row describing how change activity built up
since the last fix.
"""

from .config import (
    DEFAULT_REPOS,
    MAX_COMMITS,
    GITHUB_TOKEN,
    GROUP_FEATURE_COLS,
    LABEL_COL,
)

from .errors import (
    DataSetBuilderError,
    ExtractionError,
    ComputationInvariantError,
    EntityFailure,
)

from .models import (
    Version,
    CommitInfo,
    AuthorInfo,
    Chunk,
    FeatureVector,
    RepoHistory,
)

from .changes import (
    ChangeCounter,
    diff_sources,
    extract_structure,
)

from .segmentation import ChunkSegmenter

from .groups import (
    ChunkProcessor,
    GroupFeatureAggregator,
)

from .dataset import Dataset

from .builder import GroupDataSetBuilder

from .github import (
    GitHubIssueChecker,
    is_fix_message,
    parse_repo_url,
)

from .extraction import RepoHistoryExtractor

from .diagnostics import diagnose_history, diagnose_dataset

__version__ = "0.3.0"

__all__ = [
    # Config
    "DEFAULT_REPOS",
    "MAX_COMMITS",
    "GITHUB_TOKEN",
    "GROUP_FEATURE_COLS",
    "LABEL_COL",
    # Errors
    "DataSetBuilderError",
    "ExtractionError",
    "ComputationInvariantError",
    "EntityFailure",
    # Models
    "Version",
    "CommitInfo",
    "AuthorInfo",
    "Chunk",
    "FeatureVector",
    "RepoHistory",
    # Changes
    "ChangeCounter",
    "diff_sources",
    "extract_structure",
    # Aggregation
    "ChunkSegmenter",
    "ChunkProcessor",
    "GroupFeatureAggregator",
    "Dataset",
    "GroupDataSetBuilder",
    # GitHub
    "GitHubIssueChecker",
    "is_fix_message",
    "parse_repo_url",
    # Extraction
    "RepoHistoryExtractor",
    # Diagnostics
    "diagnose_history",
    "diagnose_dataset",
]
