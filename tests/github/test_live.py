"""Tests against the real GitHub API. Run with `pytest --integration` and GITHUB_TOKEN set."""
import os

import pytest

from action_control.github.client import GitHubClient

# read at import time; the autouse environment fixture clears it per test
LIVE_TOKEN = os.environ.get("GITHUB_TOKEN")


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.skipif(not LIVE_TOKEN, reason="GITHUB_TOKEN is not set")
async def test_public_repository_actions():
    async with GitHubClient(LIVE_TOKEN) as client:
        actions = await client.get_actions("actions", "checkout")

    assert actions
    assert any(a.uses.startswith("actions/") for a in actions)


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.skipif(not LIVE_TOKEN, reason="GITHUB_TOKEN is not set")
async def test_public_organization_listing():
    async with GitHubClient(LIVE_TOKEN) as client:
        repos = await client.list_repositories("actions")

    assert "actions/checkout" in {r.full_name for r in repos}
