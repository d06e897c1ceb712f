"""
Pytest tests for the Link-header count estimate.

Run from the project root:
    pytest tests/test_count_estimator.py -v
"""

import asyncio

from repo_activity.application.count_estimator import estimate_count
from repo_activity.infrastructure.pagination import last_page_number

from conftest import last_link


# ============================================================================
# Tests for last_page_number()
# ============================================================================

def test_last_page_number_reads_last_relation():
    header = ('<https://api.github.com/repos/o/r/commits?per_page=1&page=2>; rel="next", '
              '<https://api.github.com/repos/o/r/commits?per_page=1&page=7>; rel="last"')
    assert last_page_number(header) == 7


def test_last_page_number_with_page_as_first_parameter():
    assert last_page_number('<https://api.github.com/x?page=42&per_page=1>; rel="last"') == 42


def test_last_page_number_without_last_relation():
    header = '<https://api.github.com/x?per_page=1&page=1>; rel="first", <https://api.github.com/x?page=1>; rel="prev"'
    assert last_page_number(header) is None
    assert last_page_number(None) is None
    assert last_page_number("") is None


def test_last_page_number_ignores_non_numeric_page():
    assert last_page_number('<https://api.github.com/x?page=abc>; rel="last"') is None


# ============================================================================
# Tests for estimate_count()
# ============================================================================

def test_estimate_uses_last_page(fake_client):
    path = "repos/octo/alpha/commits"
    fake_client.add(path, 1, data=[{"sha": "a"}], headers=last_link(path, 7))

    assert asyncio.run(estimate_count(fake_client, path)) == 7


def test_estimate_counts_single_item_without_link(fake_client):
    fake_client.add("repos/octo/alpha/commits", 1, data=[{"sha": "a"}])

    assert asyncio.run(estimate_count(fake_client, "repos/octo/alpha/commits")) == 1


def test_estimate_counts_empty_body_as_zero(fake_client):
    fake_client.add("repos/octo/alpha/pulls", 1, data=[])

    assert asyncio.run(estimate_count(fake_client, "repos/octo/alpha/pulls", {"state": "all"})) == 0


def test_estimate_non_list_body_is_zero(fake_client):
    fake_client.add("repos/octo/alpha/commits", 1, data={"message": "Git Repository is empty."})

    assert asyncio.run(estimate_count(fake_client, "repos/octo/alpha/commits")) == 0


def test_estimate_http_error_is_zero(fake_client):
    fake_client.add("repos/octo/alpha/commits", 1, status=409, data={"message": "conflict"})

    assert asyncio.run(estimate_count(fake_client, "repos/octo/alpha/commits")) == 0


def test_estimate_transport_error_is_zero(fake_client, timeout_error):
    fake_client.add("repos/octo/alpha/commits", 1, error=timeout_error)

    assert asyncio.run(estimate_count(fake_client, "repos/octo/alpha/commits")) == 0


def test_estimate_requests_exactly_one_single_item_page(fake_client):
    path = "repos/octo/alpha/pulls"
    fake_client.add(path, 1, data=[{}], headers=last_link(path, 3))

    asyncio.run(estimate_count(fake_client, path, {"state": "all", "per_page": 50}))

    assert fake_client.calls == [(path, {"state": "all", "per_page": 1})]
