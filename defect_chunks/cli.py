"""
Mine repositories into a commit-group data set.

Usage:
    defect-chunks https://github.com/pallets/click
    defect-chunks ../local/repo --no-github-api --output groups.csv
    defect-chunks --diagnose --workers 4      # default repos
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

from .builder import GroupDataSetBuilder
from .config import BASELINES, DEFAULT_REPOS, FIRST_CHUNK_BASELINE, MAX_COMMITS
from .diagnostics import diagnose_dataset, diagnose_history
from .extraction import RepoHistoryExtractor
from .github import GitHubIssueChecker, parse_repo_url
from .segmentation import ChunkSegmenter


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='defect-chunks',
        description='Build a commit-group defect data set from repository history',
    )
    parser.add_argument('repos', nargs='*', default=DEFAULT_REPOS,
                        help='repository URLs or local paths')
    parser.add_argument('--output', '-o', type=Path, default=Path('dataset_groups.csv'))
    parser.add_argument('--max-commits', type=int, default=MAX_COMMITS,
                        help='newest commits to mine per repository (0 = all)')
    parser.add_argument('--no-github-api', action='store_true',
                        help='detect fixes from commit messages only')
    parser.add_argument('--workers', type=int, default=1)
    parser.add_argument('--baseline', choices=BASELINES, default=FIRST_CHUNK_BASELINE,
                        help='time base for the group before the first fix')
    parser.add_argument('--diagnose', action='store_true',
                        help='print history and dataset quality reports')
    return parser.parse_args(argv)


def mine_repo(repo_url: str, args: argparse.Namespace) -> tuple[pd.DataFrame, list]:
    """Data set rows of one repository and the entity/chunk failures met on the way"""
    issue_checker = None
    if not args.no_github_api and repo_url.startswith(('https://github.com', 'github.com')):
        owner, repo = parse_repo_url(repo_url)
        issue_checker = GitHubIssueChecker(owner, repo)
        issue_checker.check_rate_limit()
        print(f"  Using GitHub API for fix detection", flush=True)

    history = RepoHistoryExtractor(repo_url, args.max_commits or None, issue_checker).extract()
    if args.diagnose:
        diagnose_history(history)

    segmenter = ChunkSegmenter(history, baseline=args.baseline)
    builder = GroupDataSetBuilder(history, segmenter=segmenter)
    df = builder.build(workers=args.workers).to_frame()
    df.insert(0, 'repo', repo_url.rstrip('/').split('/')[-1])
    return df, builder.failures


def print_failures(failed_repos: list[str], failures: list):
    """Corpus-wide failure summary, printed once every repo was processed"""
    if failed_repos:
        print(f"Failed repos: {failed_repos}")
    if failures:
        print(f"Skipped files/chunks: {len(failures)}")
        for repo_url, failure in failures:
            print(f"  - {repo_url.rstrip('/').split('/')[-1]}: {failure}")


def main(argv=None) -> int:
    args = parse_args(argv)

    frames = []
    failed_repos = []
    failures = []
    for i, repo_url in enumerate(args.repos, 1):
        print(f"\n[{i}/{len(args.repos)}] ", end="")
        try:
            df, repo_failures = mine_repo(repo_url, args)
        except Exception as e:
            print(f"  ERROR: {e}")
            failed_repos.append(repo_url)
            continue
        frames.append(df)
        failures.extend((repo_url, f) for f in repo_failures)

    if not frames or not any(len(df) for df in frames):
        print("\nNo samples produced.")
        print_failures(failed_repos, failures)
        return 1

    dataset = pd.concat(frames, ignore_index=True)
    dataset.to_csv(args.output, index=False)

    print(f"\n{'='*60}")
    print(f"DONE: {len(dataset)} samples from {len(frames)} repos")
    print(f"Saved to: {args.output}")
    print_failures(failed_repos, failures)
    print(f"{'='*60}")

    if args.diagnose:
        diagnose_dataset(dataset)
    return 0


if __name__ == "__main__":
    sys.exit(main())
