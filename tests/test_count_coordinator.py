"""Pytest tests for concurrent per-repository count estimation."""

import asyncio

from repo_activity.application.count_coordinator import collect_all_counts, estimate_all_counts
from repo_activity.domain.activity import ApproximateCounts
from repo_activity.domain.repository import Repository

from conftest import last_link, repo_payload


def _repo(name, stars):
    return Repository.from_github_api(repo_payload(name, stars), "octo")


def _add_counts(client, name, commits, pulls, gate=None):
    commits_path = f"repos/octo/{name}/commits"
    pulls_path = f"repos/octo/{name}/pulls"
    client.add(commits_path, 1, data=[{}], headers=last_link(commits_path, commits), gate=gate)
    client.add(pulls_path, 1, data=[{}], headers=last_link(pulls_path, pulls))


def test_counts_for_every_repository(fake_client):
    _add_counts(fake_client, "alpha", 120, 8)
    fake_client.add("repos/octo/beta/commits", 1, data=[{}], headers=last_link("repos/octo/beta/commits", 3))
    fake_client.add("repos/octo/beta/pulls", 1, data=[])

    counts = asyncio.run(collect_all_counts(fake_client, [_repo("alpha", 42), _repo("beta", 7)]))

    assert counts == {
        "octo/alpha": ApproximateCounts(commit_count=120, pull_count=8),
        "octo/beta": ApproximateCounts(commit_count=3, pull_count=0),
    }


def test_pull_estimate_includes_closed_pulls(fake_client):
    _add_counts(fake_client, "alpha", 2, 2)

    asyncio.run(collect_all_counts(fake_client, [_repo("alpha", 1)]))

    assert fake_client.calls_to("repos/octo/alpha/pulls") == [
        ("repos/octo/alpha/pulls", {"state": "all", "per_page": 1})
    ]


def test_results_yield_in_completion_order(fake_client):
    async def scenario():
        gate = asyncio.Event()
        _add_counts(fake_client, "alpha", 120, 8, gate=gate)
        _add_counts(fake_client, "beta", 3, 1)

        seen = []
        async for full_name, counts in estimate_all_counts(fake_client, [_repo("alpha", 42), _repo("beta", 7)]):
            seen.append((full_name, counts))
            gate.set()
        return seen

    seen = asyncio.run(scenario())

    assert [name for name, _ in seen] == ["octo/beta", "octo/alpha"]
    assert seen[1][1] == ApproximateCounts(commit_count=120, pull_count=8)


def test_failed_metric_resolves_to_zero_without_blocking_others(fake_client, timeout_error):
    _add_counts(fake_client, "alpha", 120, 8)
    fake_client.add("repos/octo/beta/commits", 1, error=timeout_error)
    fake_client.add("repos/octo/beta/pulls", 1, status=404, data={"message": "Not Found"})
    _add_counts(fake_client, "gamma", 5, 4)

    counts = asyncio.run(collect_all_counts(
        fake_client, [_repo("alpha", 3), _repo("beta", 2), _repo("gamma", 1)]
    ))

    assert counts["octo/beta"] == ApproximateCounts(commit_count=0, pull_count=0)
    assert counts["octo/alpha"] == ApproximateCounts(commit_count=120, pull_count=8)
    assert counts["octo/gamma"] == ApproximateCounts(commit_count=5, pull_count=4)


def test_empty_collection_yields_nothing(fake_client):
    assert asyncio.run(collect_all_counts(fake_client, [])) == {}
    assert fake_client.calls == []
