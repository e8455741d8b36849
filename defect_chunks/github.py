"""
Fix-commit detection from commit messages and GitHub issue labels.
"""

import requests

from .config import (
    GITHUB_TOKEN,
    GITHUB_API_BASE,
    GITHUB_TIMEOUT,
    BUG_LABELS,
    BUG_KEYWORDS,
    EXCLUDE_KEYWORDS,
    ISSUE_REFERENCE,
)


def parse_repo_url(url: str) -> tuple[str, str]:
    """Extract owner and repo name from GitHub URL"""
    # Handle: https://github.com/owner/repo or github.com/owner/repo(.git)
    parts = url.rstrip('/').split('/')
    repo = parts[-1][:-4] if parts[-1].endswith('.git') else parts[-1]
    return parts[-2], repo


def is_fix_message(msg: str) -> bool:
    """Keyword rule: mentions a fix and is not housekeeping"""
    return bool(BUG_KEYWORDS.search(msg)) and not bool(EXCLUDE_KEYWORDS.search(msg))


def make_session(token: str = GITHUB_TOKEN) -> requests.Session:
    session = requests.Session()
    if token:
        session.headers['Authorization'] = f'token {token}'
    session.headers['Accept'] = 'application/vnd.github.v3+json'
    session.headers['User-Agent'] = 'Defect-Chunks'
    return session


class GitHubIssueChecker:
    """Classify commits as fixes using the labels of the issues they reference"""

    def __init__(self, owner: str, repo: str, session: requests.Session = None):
        self.owner = owner
        self.repo = repo
        self.session = session or make_session()
        self.cache = {}  # issue_number -> is_bug, None when the lookup failed
        self.api_calls = 0
        self.cache_hits = 0
        self.errors = 0
        self.rate_limited = False

    def check_rate_limit(self) -> int | None:
        """Report remaining API quota"""
        try:
            resp = self.session.get(f'{GITHUB_API_BASE}/rate_limit', timeout=GITHUB_TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as e:
            print(f"  GitHub API unreachable: {e}", flush=True)
            return None
        core = resp.json()['resources']['core']
        print(f"  GitHub API: {core['remaining']}/{core['limit']} requests remaining", flush=True)
        if core['remaining'] < 100:
            print(f"  WARNING: Low API quota. Set GITHUB_TOKEN env var for 5000/hr limit.")
        return core['remaining']

    def issue_is_bug(self, issue_num: int) -> bool | None:
        """True/False from the issue labels, None when the API gave no answer"""
        if issue_num in self.cache:
            self.cache_hits += 1
            return self.cache[issue_num]
        if self.rate_limited:
            return None

        url = f'{GITHUB_API_BASE}/repos/{self.owner}/{self.repo}/issues/{issue_num}'
        try:
            resp = self.session.get(url, timeout=GITHUB_TIMEOUT)
        except requests.RequestException:
            self.errors += 1
            return None
        self.api_calls += 1

        if resp.status_code == 200:
            labels = {lbl['name'].lower() for lbl in resp.json().get('labels', [])}
            self.cache[issue_num] = bool(labels & BUG_LABELS)
        elif resp.status_code == 404:
            # Not an issue (possibly a PR number)
            self.cache[issue_num] = False
        elif resp.status_code == 403:
            print(f"  Rate limited by GitHub API. Falling back to regex.", flush=True)
            self.rate_limited = True
            return None
        else:
            self.errors += 1
            return None
        return self.cache[issue_num]

    def is_bug_fix(self, commit_msg: str) -> tuple[bool, str]:
        """
        Determine if a commit is a bug fix.

        Returns:
            (is_bug, method): method is 'issue_label', 'regex_fallback',
            'issue_not_bug', 'regex' or 'none'
        """
        issue_nums = ISSUE_REFERENCE.findall(commit_msg)
        if issue_nums:
            if any(self.issue_is_bug(int(num)) for num in issue_nums):
                return (True, 'issue_label')
            # Issue might just not be labeled
            if is_fix_message(commit_msg):
                return (True, 'regex_fallback')
            return (False, 'issue_not_bug')

        if is_fix_message(commit_msg):
            return (True, 'regex')
        return (False, 'none')

    def get_stats(self) -> dict:
        """Return API usage statistics"""
        return {
            'api_calls': self.api_calls,
            'cache_hits': self.cache_hits,
            'errors': self.errors,
            'cached_issues': len(self.cache),
            'bug_issues': sum(1 for v in self.cache.values() if v),
        }
