"""
Repository mining: build the read-only history index for one repository.
"""

from collections import defaultdict
from dataclasses import dataclass, field, replace

from pydriller import ModificationType, Repository

from .changes import diff_sources
from .config import MAX_COMMITS, SKIP_TEST_FILES, SOURCE_SUFFIXES
from .errors import ExtractionError
from .github import GitHubIssueChecker, is_fix_message
from .models import AuthorInfo, CommitInfo, RepoHistory, Version


@dataclass
class FileChange:
    path: str
    old_path: str | None
    changes: dict = field(default_factory=dict)
    error: ExtractionError | None = None
    # The file left the tracked tree: deleted, or renamed out of it
    removed: bool = False


@dataclass
class CommitRecord:
    commit_hash: str
    author: str
    time: int
    is_fix: bool
    files: list[FileChange] = field(default_factory=list)


def is_tracked(path: str | None) -> bool:
    if not path or not path.endswith(SOURCE_SUFFIXES):
        return False
    return not (SKIP_TEST_FILES and 'test' in path.lower())


class RepoHistoryExtractor:
    """Walk a repository once and index versions, commits, authors and fixes"""

    def __init__(
        self,
        repo_url: str,
        max_commits: int | None = MAX_COMMITS,
        issue_checker: GitHubIssueChecker | None = None,
        differ=diff_sources,
    ):
        self.repo_url = repo_url
        self.max_commits = max_commits
        self.issue_checker = issue_checker
        self.differ = differ
        self.detection_stats = defaultdict(int)

    def _is_fix(self, msg: str) -> bool:
        if self.issue_checker:
            is_bug, method = self.issue_checker.is_bug_fix(msg)
        else:
            is_bug = is_fix_message(msg)
            method = 'regex' if is_bug else 'none'
        self.detection_stats[method] += 1
        return is_bug

    def read_commits(self) -> list[CommitRecord]:
        """Newest commits first, diffed while their sources are available"""
        records = []
        for commit in Repository(self.repo_url, only_no_merge=True, order='reverse').traverse_commits():
            if self.max_commits and len(records) >= self.max_commits:
                break

            record = CommitRecord(
                commit_hash=commit.hash,
                author=commit.author.email,
                time=int(commit.committer_date.timestamp()),
                is_fix=self._is_fix(commit.msg),
            )
            for mod in commit.modified_files:
                path = mod.new_path or mod.old_path
                if not is_tracked(path):
                    if mod.change_type == ModificationType.RENAME and is_tracked(mod.old_path):
                        record.files.append(FileChange(mod.old_path, None, removed=True))
                    continue
                if mod.change_type == ModificationType.DELETE:
                    record.files.append(FileChange(path, None, removed=True))
                    continue
                old_path = mod.old_path if mod.change_type == ModificationType.RENAME else None
                change = FileChange(path, old_path)
                try:
                    change.changes = dict(self.differ(mod.source_code_before, mod.source_code))
                except ExtractionError as e:
                    e.details.update(entity=path, commit=commit.hash[:8])
                    change.error = e
                record.files.append(change)
            records.append(record)
        return records

    def build_history(self, records: list[CommitRecord]) -> RepoHistory:
        """Replay commit records oldest first into a RepoHistory"""
        versions = defaultdict(list)
        failures = {}
        commits = {}
        fixes = set()
        author_commits = defaultdict(int)
        author_changes = defaultdict(int)

        for record in reversed(records):
            num_changes = 0
            num_entities = 0
            for change in record.files:
                if change.removed:
                    # Only files still in the tree at the newest mined commit are entities
                    versions.pop(change.path, None)
                    failures.pop(change.path, None)
                    continue
                if change.old_path and change.old_path != change.path:
                    versions[change.path] = versions.pop(change.old_path, []) + versions[change.path]
                    if change.old_path in failures:
                        failures[change.path] = failures.pop(change.old_path)
                if change.error is not None:
                    failures.setdefault(change.path, change.error)
                    continue
                total = sum(change.changes.values())
                if total == 0:
                    continue
                versions[change.path].append(Version(change.path, record.commit_hash, 0, change.changes))
                num_changes += total
                num_entities += 1

            commits[record.commit_hash] = CommitInfo(
                record.commit_hash, record.author, record.time, num_changes, num_entities
            )
            if record.is_fix:
                fixes.add(record.commit_hash)
            author_commits[record.author] += 1
            author_changes[record.author] += num_changes

        authors = {
            author: AuthorInfo(author, author_commits[author], author_changes[author])
            for author in author_commits
        }

        ordered = {}
        for path, entity_versions in versions.items():
            if path in failures or not entity_versions:
                continue
            # Stable: equal commit times keep history order
            entity_versions = sorted(entity_versions, key=lambda v: commits[v.commit_hash].time)
            ordered[path] = [replace(v, entity=path, index=i) for i, v in enumerate(entity_versions)]

        return RepoHistory(ordered, commits, authors, fixes, failures)

    def extract(self) -> RepoHistory:
        repo_name = self.repo_url.rstrip('/').split('/')[-1]
        print(f"\nProcessing: {repo_name}", flush=True)
        print(f"  Building file history...", flush=True)

        records = self.read_commits()
        history = self.build_history(records)

        num_versions = sum(len(history.list_versions(e)) for e in history.entities() if e not in history.failures)
        print(f"  Mined: {len(records)} commits, {len(history.fixes)} fixes, "
              f"{len(history)} files, {num_versions} versions", flush=True)
        print(f"  Detection methods: {dict(self.detection_stats)}")
        if self.issue_checker:
            stats = self.issue_checker.get_stats()
            print(f"  Issue API: {stats['api_calls']} calls, {stats['cache_hits']} cache hits, {stats['bug_issues']} bug issues found")
        if history.failures:
            print(f"  Unparseable files skipped: {len(history.failures)}")
        return history
