"""
Configuration and constants for Defect Chunks.
"""

import os
import re

# =============================================================================
# REPOSITORY SETTINGS
# =============================================================================

DEFAULT_REPOS = [
    "https://github.com/pallets/click",
    "https://github.com/psf/requests",
]

# Newest commits mined per repository; the walk is replayed oldest first
MAX_COMMITS = int(os.environ.get('DEFECT_CHUNKS_MAX_COMMITS', '1000'))

# Only files with these suffixes are tracked as entities
SOURCE_SUFFIXES = ('.py',)
SKIP_TEST_FILES = True

# =============================================================================
# FIX DETECTION PATTERNS
# =============================================================================

BUG_KEYWORDS = re.compile(r'\b(fix|bug|patch|error|crash|fail)\w*\b', re.IGNORECASE)

# Exclusions to reduce label noise
EXCLUDE_KEYWORDS = re.compile(
    r'\b(typo|doc|style|format|merge|revert|readme|changelog|comment|example|sample|'
    r'ci|workflow|badge|link|test|lint|typing|type.hint|annotation|deprecat)\b',
    re.IGNORECASE
)

# Matches: #123, fixes #123, closes #123, resolves #123, etc.
ISSUE_REFERENCE = re.compile(
    r'(?:fix(?:es|ed)?|close[sd]?|resolve[sd]?)?[\s:]*#(\d+)',
    re.IGNORECASE
)

BUG_LABELS = {'bug', 'bugfix', 'bug-fix', 'defect', 'error', 'issue', 'fix'}

# =============================================================================
# GITHUB API SETTINGS
# =============================================================================

GITHUB_TOKEN = os.environ.get('GITHUB_TOKEN', '')
GITHUB_API_BASE = 'https://api.github.com'
GITHUB_TIMEOUT = 10

# =============================================================================
# DATASET SCHEMA
# =============================================================================

# One row per prefix of a post-fix commit group, in this column order
GROUP_FEATURE_COLS = [
    'num_commits',          # prefix length
    'num_authors',          # distinct authors so far
    'avg_changes',          # mean commit size (structural changes)
    'avg_entities',         # mean commit breadth (files touched)
    'avg_author_commits',   # mean author experience in commits
    'avg_author_changes',   # mean author experience in changes
    'avg_change_ratio',     # mean share of a commit's changes made in this file
    'change_gini',          # dispersion of per-version change counts
    'time_since_last_fix',  # seconds since the fix that opened the group
]

META_COLS = ['entity', 'commit_hash']
LABEL_COL = 'is_buggy'

# Time base for the group preceding an entity's first fix:
# 'repository' = earliest commit in the repository, 'entity' = the file's first version
FIRST_CHUNK_BASELINE = 'repository'
BASELINES = ('repository', 'entity')
