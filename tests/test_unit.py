#!/usr/bin/env python3
"""
Unit tests for defect_chunks package.

Usage:
    python -m pytest tests/test_unit.py -v
"""

import sys
from collections import Counter
from pathlib import Path

import pytest
import requests

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


# =============================================================================
# CONFIG TESTS
# =============================================================================

def test_config_imports():
    """Config module should import without errors"""
    from defect_chunks.config import (
        DEFAULT_REPOS,
        MAX_COMMITS,
        BUG_KEYWORDS,
        EXCLUDE_KEYWORDS,
        GROUP_FEATURE_COLS,
    )
    assert len(DEFAULT_REPOS) > 0
    assert MAX_COMMITS > 0
    assert len(GROUP_FEATURE_COLS) == 9


def test_group_feature_cols_order():
    """Schema order is part of the data set contract"""
    from defect_chunks.config import GROUP_FEATURE_COLS

    assert GROUP_FEATURE_COLS[0] == 'num_commits'
    assert GROUP_FEATURE_COLS[-1] == 'time_since_last_fix'
    assert len(set(GROUP_FEATURE_COLS)) == len(GROUP_FEATURE_COLS)


def test_bug_keywords_regex():
    """Bug keywords regex should match expected patterns"""
    from defect_chunks.config import BUG_KEYWORDS, EXCLUDE_KEYWORDS

    assert BUG_KEYWORDS.search("fix: resolve issue")
    assert BUG_KEYWORDS.search("Bug fix for crash")
    assert not BUG_KEYWORDS.search("add new feature")

    assert EXCLUDE_KEYWORDS.search("fix typo in readme")
    assert not EXCLUDE_KEYWORDS.search("fix null pointer crash")


# =============================================================================
# ERROR TESTS
# =============================================================================

def test_error_details_in_str():
    """Errors render their details"""
    from defect_chunks.errors import ExtractionError, EntityFailure

    err = ExtractionError("Missing commit info", {'commit': 'abc'})
    assert str(err) == "Missing commit info (commit=abc)"
    assert str(ExtractionError("plain")) == "plain"

    failure = EntityFailure('src/a.py', err, chunk_index=2)
    assert failure.kind == 'ExtractionError'
    assert 'src/a.py[chunk 2]' in str(failure)


# =============================================================================
# STRUCTURE DIFF TESTS
# =============================================================================

BEFORE = '''
def alpha(x):
    return x + 1


def beta(x):
    return x * 2


class Shape:
    sides = 0

    def area(self):
        return 0
'''

AFTER = '''
def alpha(x):
    return x + 2


def gamma(x):
    return x - 1


class Shape:
    sides = 0

    def area(self):
        return 0

    def perimeter(self):
        return 0
'''


def test_extract_structure():
    """Functions, classes and methods are listed in source order"""
    from defect_chunks.changes import extract_structure

    structure = extract_structure(BEFORE)
    assert list(structure) == ['alpha', 'beta', 'Shape', 'Shape.area']
    assert structure['Shape'].kind == 'class'
    assert structure['Shape.area'].kind == 'method'
    # Class body leaves its methods out
    assert structure['Shape'].body == ('class Shape:', 'sides = 0')


def test_extract_structure_empty():
    from defect_chunks.changes import extract_structure

    assert extract_structure(None) == {}
    assert extract_structure('') == {}


def test_extract_structure_invalid():
    """Unparseable code is an extraction failure"""
    from defect_chunks.changes import extract_structure
    from defect_chunks.errors import ExtractionError

    with pytest.raises(ExtractionError):
        extract_structure("def broken(:\n    pass\n")


def test_diff_sources_insert_delete_update():
    from defect_chunks.changes import diff_sources

    tally = diff_sources(BEFORE, AFTER)
    assert tally == Counter({
        'function_update': 1,
        'function_delete': 1,
        'function_insert': 1,
        'method_insert': 1,
    })


def test_diff_sources_move():
    """Reordered but unchanged blocks count as moves"""
    from defect_chunks.changes import diff_sources

    before = "def a():\n    return 1\n\n\ndef b():\n    return 2\n"
    after = "def b():\n    return 2\n\n\ndef a():\n    return 1\n"
    assert diff_sources(before, after) == Counter({'function_move': 1})


def test_diff_sources_new_and_deleted_file():
    from defect_chunks.changes import diff_sources

    assert diff_sources(None, BEFORE) == Counter({'function_insert': 2, 'class_insert': 1, 'method_insert': 1})
    assert diff_sources(BEFORE, None)['function_delete'] == 2


def test_module_level_code_is_a_block():
    """Imports, constants and top-level statements form the '<module>' block"""
    from defect_chunks.changes import MODULE_BLOCK, extract_structure

    code = "import os\n\nLIMIT = 10\n\n\ndef run():\n    return LIMIT\n"
    structure = extract_structure(code)
    assert list(structure) == [MODULE_BLOCK, 'run']
    assert structure[MODULE_BLOCK].kind == 'module'
    assert structure[MODULE_BLOCK].body == ('import os', 'LIMIT = 10')
    assert structure['run'].body == ('def run():', 'return LIMIT')


def test_diff_sources_module_constant():
    """Editing only a constant is still a structural change"""
    from defect_chunks.changes import diff_sources

    before = "LIMIT = 10\n\n\ndef run():\n    return LIMIT\n"
    after = "LIMIT = 100\n\n\ndef run():\n    return LIMIT\n"
    assert diff_sources(before, after) == Counter({'module_update': 1})

    no_imports = "def run():\n    return 1\n"
    with_import = "import os\n\n\ndef run():\n    return 1\n"
    assert diff_sources(no_imports, with_import) == Counter({'module_insert': 1})
    assert diff_sources(with_import, no_imports) == Counter({'module_delete': 1})


def test_diff_sources_whitespace_only():
    """Blank lines do not change structure"""
    from defect_chunks.changes import diff_sources

    assert sum(diff_sources(BEFORE, BEFORE.replace('\n\n\n', '\n\n')).values()) == 0


# =============================================================================
# CHANGE COUNTER TESTS
# =============================================================================

def test_change_counter():
    from defect_chunks.changes import ChangeCounter
    from defect_chunks.models import Version

    counter = ChangeCounter()
    counter.count_changes(Version('a.py', 'c1', 0, {'method_insert': 2, 'class_update': 1}))
    assert counter.get_total_sum() == 3

    other = ChangeCounter().count_changes(Version('a.py', 'c2', 1, {'method_insert': 1}))
    counter.add(other)
    assert counter.counts['method_insert'] == 3
    assert counter.get_total_sum() == 4

    assert counter.reset().get_total_sum() == 0


def test_change_counter_zero_changes():
    """A version without changes is valid"""
    from defect_chunks.changes import ChangeCounter
    from defect_chunks.models import Version

    counter = ChangeCounter().count_changes(Version('a.py', 'c1', 0, {}))
    assert counter.get_total_sum() == 0


def test_change_counter_custom_differ():
    from defect_chunks.changes import ChangeCounter
    from defect_chunks.errors import ExtractionError
    from defect_chunks.models import Version

    counter = ChangeCounter(differ=lambda v: {'field_delete': 5})
    assert counter.count_changes(Version('a.py', 'c1', 0)).get_total_sum() == 5

    broken = ChangeCounter(differ=lambda v: {'field_delete': -1})
    with pytest.raises(ExtractionError):
        broken.count_changes(Version('a.py', 'c1', 0))


# =============================================================================
# MODELS TESTS
# =============================================================================

def test_repo_history_lookups():
    from defect_chunks.errors import ExtractionError
    from defect_chunks.models import AuthorInfo, CommitInfo, RepoHistory, Version

    history = RepoHistory(
        versions={'a.py': [Version('a.py', 'c1', 0, {'function_insert': 1})]},
        commits={'c1': CommitInfo('c1', 'dev@x', 500, 1, 1), 'c0': CommitInfo('c0', 'dev@x', 200)},
        authors={'dev@x': AuthorInfo('dev@x', 2, 1)},
        fixes={'c1'},
    )
    assert history.entities() == ['a.py']
    assert history.is_fix_commit('c1')
    assert not history.is_fix_commit('c0')
    assert history.first_commit_time == 200
    assert history.get_author_info('dev@x').num_commits == 2

    with pytest.raises(ExtractionError):
        history.get_commit_info('missing')
    with pytest.raises(ExtractionError):
        history.get_author_info('nobody')
    with pytest.raises(ExtractionError):
        history.list_versions('b.py')
    with pytest.raises(TypeError):
        history.commits['c2'] = None


def test_empty_history_first_commit_time():
    from defect_chunks.models import RepoHistory

    assert RepoHistory({}, {}, {}).first_commit_time == 0


def test_feature_vector_to_dict():
    from defect_chunks.models import FeatureVector

    vector = FeatureVector('a.py', 'c1', {'num_commits': 1})
    assert vector.to_dict() == {'entity': 'a.py', 'commit_hash': 'c1', 'num_commits': 1}


# =============================================================================
# DATASET TESTS
# =============================================================================

def test_dataset_emit_and_frame():
    from defect_chunks.dataset import Dataset
    from defect_chunks.models import FeatureVector

    dataset = Dataset(['x', 'y'])
    dataset.emit(FeatureVector('a.py', 'c1', {'y': 2.0, 'x': 1}), True)
    dataset.emit(FeatureVector('a.py', 'c2', {'x': 3, 'y': 4.0}), False)

    df = dataset.to_frame()
    assert list(df.columns) == ['entity', 'commit_hash', 'x', 'y', 'is_buggy']
    assert df['is_buggy'].tolist() == [1, 0]
    assert df['x'].tolist() == [1, 3]
    assert len(dataset) == 2


def test_dataset_rejects_schema_mismatch():
    from defect_chunks.dataset import Dataset
    from defect_chunks.models import FeatureVector

    dataset = Dataset(['x', 'y'])
    with pytest.raises(ValueError):
        dataset.emit(FeatureVector('a.py', 'c1', {'x': 1}), False)
    with pytest.raises(ValueError):
        dataset.emit(FeatureVector('a.py', 'c1', {'x': 1, 'y': 2, 'z': 3}), False)


def test_dataset_to_csv(tmp_path):
    import pandas as pd
    from defect_chunks.dataset import Dataset
    from defect_chunks.models import FeatureVector

    dataset = Dataset(['x'])
    dataset.emit(FeatureVector('a.py', 'c1', {'x': 0.5}), True)
    path = dataset.to_csv(tmp_path / "out.csv")

    df = pd.read_csv(path)
    assert df.loc[0, 'x'] == 0.5
    assert df.loc[0, 'is_buggy'] == 1


# =============================================================================
# GITHUB TESTS
# =============================================================================

class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload or {}

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")


class FakeSession:
    """Serves canned responses keyed by URL suffix"""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        for suffix, response in self.responses.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        return FakeResponse(404)


def test_parse_repo_url():
    """Should parse GitHub URLs correctly"""
    from defect_chunks.github import parse_repo_url

    assert parse_repo_url("https://github.com/pallets/click") == ("pallets", "click")
    assert parse_repo_url("https://github.com/user/repo/") == ("user", "repo")
    assert parse_repo_url("github.com/foo/bar.git") == ("foo", "bar")


def test_is_fix_message():
    from defect_chunks.github import is_fix_message

    assert is_fix_message("Fix crash when config is empty")
    assert not is_fix_message("Fix typo in readme")
    assert not is_fix_message("Add streaming support")


def test_issue_checker_uses_labels():
    from defect_chunks.github import GitHubIssueChecker

    session = FakeSession({'/issues/12': FakeResponse(200, {'labels': [{'name': 'Bug'}]})})
    checker = GitHubIssueChecker("pallets", "click", session=session)

    assert checker.is_bug_fix("Update parser (#12)") == (True, 'issue_label')
    assert checker.is_bug_fix("Update parser again (#12)") == (True, 'issue_label')
    assert checker.api_calls == 1
    assert checker.cache_hits == 1
    assert checker.get_stats()['bug_issues'] == 1


def test_issue_checker_unlabeled_issue():
    from defect_chunks.github import GitHubIssueChecker

    session = FakeSession({'/issues/5': FakeResponse(200, {'labels': [{'name': 'enhancement'}]})})
    checker = GitHubIssueChecker("o", "r", session=session)

    assert checker.is_bug_fix("Add option (#5)") == (False, 'issue_not_bug')
    assert checker.is_bug_fix("Fix crash on empty input #5") == (True, 'regex_fallback')
    assert checker.is_bug_fix("Fix crash on empty input") == (True, 'regex')
    assert checker.is_bug_fix("Add option") == (False, 'none')


def test_issue_checker_network_error_falls_back():
    from defect_chunks.github import GitHubIssueChecker

    session = FakeSession({'/issues/7': requests.ConnectionError("down")})
    checker = GitHubIssueChecker("o", "r", session=session)

    assert checker.is_bug_fix("Fix crash on empty input #7") == (True, 'regex_fallback')
    assert checker.errors == 1
    assert 7 not in checker.cache


def test_issue_checker_rate_limited():
    from defect_chunks.github import GitHubIssueChecker

    session = FakeSession({'/issues/1': FakeResponse(403), '/issues/2': FakeResponse(200)})
    checker = GitHubIssueChecker("o", "r", session=session)

    assert checker.issue_is_bug(1) is None
    assert checker.rate_limited
    # No further calls once rate limited
    assert checker.issue_is_bug(2) is None
    assert len(session.calls) == 1


def test_check_rate_limit():
    from defect_chunks.github import GitHubIssueChecker

    payload = {'resources': {'core': {'remaining': 4999, 'limit': 5000}}}
    checker = GitHubIssueChecker("o", "r", session=FakeSession({'/rate_limit': FakeResponse(200, payload)}))
    assert checker.check_rate_limit() == 4999

    offline = GitHubIssueChecker("o", "r", session=FakeSession({'/rate_limit': requests.Timeout()}))
    assert offline.check_rate_limit() is None


# =============================================================================
# INTEGRATION TESTS
# =============================================================================

def test_package_imports():
    """Main package should import all public APIs"""
    from defect_chunks import (
        DEFAULT_REPOS,
        GROUP_FEATURE_COLS,
        ChangeCounter,
        ChunkSegmenter,
        GroupFeatureAggregator,
        GroupDataSetBuilder,
        Dataset,
        RepoHistoryExtractor,
        GitHubIssueChecker,
        diagnose_history,
    )


def test_package_version():
    """Package should have version"""
    import defect_chunks
    assert hasattr(defect_chunks, '__version__')
    assert defect_chunks.__version__


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
