#!/usr/bin/env python3
"""Script to list a GitHub account's repositories with activity counts and recent details."""

import argparse
import asyncio
import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from repo_activity.application.browser_service import RepositoryBrowser
from repo_activity.domain.activity import DetailStatus
from repo_activity.infrastructure.github_client import GitHubRestClient, RepositoryListError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse a GitHub account's repositories")
    parser.add_argument(
        "-a",
        "--account",
        default=os.getenv("GITHUB_USER", "octocat"),
        help="Account whose repositories are listed (default: GITHUB_USER or octocat)",
    )
    parser.add_argument(
        "-e",
        "--expand",
        action="append",
        default=[],
        metavar="REPO",
        help="Show recent commits and pull requests for REPO (name or owner/name). Repeatable.",
    )
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Publish all activity counts at once instead of as each repository finishes",
    )
    return parser


def _badge(value) -> str:
    return "—" if value is None else str(value)


def render(browser: RepositoryBrowser) -> str:
    """Render the list and any expanded repositories as plain text."""
    lines = [f"GitHub repositories for {browser.account}", ""]

    for repo in browser.repositories:
        commits, pulls = browser.badge_counts(repo.full_name)
        lines.append(f"{repo.name}  [Commits: {_badge(commits)}] [PRs: {_badge(pulls)}]  {repo.html_url}")
        if repo.description:
            lines.append(f"    {repo.description}")
        lines.append(f"    ★ {repo.stars} • {repo.language or '—'}")

        if repo.full_name not in browser.expanded:
            continue

        detail = browser.detail(repo.full_name)
        if detail.status is DetailStatus.NOT_REQUESTED or detail.is_loading:
            lines.append("    Loading details…")
        elif detail.status is DetailStatus.FAILED:
            lines.append(f"    Error: {detail.error}")
        else:
            lines.append("    Recent commits")
            for commit in detail.commits:
                when = commit.authored_at.astimezone().strftime("%Y-%m-%d %H:%M") if commit.authored_at else "Unknown"
                lines.append(f"      {commit.first_line}  ({commit.author_name} • {when})")
            lines.append("    Recent pull requests")
            for pull in detail.pulls:
                merged = " • merged" if pull.merged else ""
                lines.append(f"      #{pull.number} {pull.title}  ({pull.author_login} • {pull.state}{merged})")
        lines.append("")

    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    github_client = GitHubRestClient()
    publish_mode = RepositoryBrowser.PUBLISH_BATCH if args.batch else None
    browser = RepositoryBrowser(github_client, args.account, publish_mode=publish_mode)

    try:
        try:
            await browser.load_repositories()
        except RepositoryListError:
            print(f"Error: {browser.error}")
            return 1

        for name in args.expand:
            repo = browser.repository(name)
            if repo is None:
                logger.warning(f"Repository {name} not found for {args.account}")
                continue
            browser.toggle_expansion(repo)

        await browser.wait_for_pending()
        print(render(browser))
        return 0
    finally:
        await github_client.close()


def main():
    """Load repositories, wait for counts and requested details, then print them."""
    args = setup_parser().parse_args()
    try:
        return asyncio.run(run(args))
    except Exception as e:
        logger.error(f"Browsing failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
