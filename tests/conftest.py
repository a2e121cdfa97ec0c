import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from click.testing import CliRunner

from action_control.exceptions import TransportError
from action_control.github.models import Repository
from action_control.policy.models import ObservedAction, Policy, PolicyConfig, PolicyMode


# Skip integration tests unless explicitly enabled
def pytest_addoption(parser):
    parser.addoption("--integration", action="store_true", default=False, help="Run integration tests")

def pytest_collection_modifyitems(config, items):
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and config files out of every test."""
    for var in ("GITHUB_TOKEN", "ACTION_CONTROL_GITHUB_TOKEN", "ACTION_CONTROL_ORGANIZATION",
                "ACTION_CONTROL_REPOSITORY", "ACTION_CONTROL_OUTPUT_FORMAT",
                "ACTION_CONTROL_POLICY_CONTENT", "ACTION_CONTROL_POLICY_FILE",
                "ACTION_CONTROL_IGNORE_LOCAL_POLICY", "ACTION_CONTROL_POLICY_MODE",
                "ACTION_CONTROL_LOG_FORMAT", "ACTION_CONTROL_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("action_control.config.CONFIG_SEARCH_PATHS", (Path("config.yaml"),))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def sample_policy():
    return PolicyConfig(
        policy_mode=PolicyMode.ALLOW,
        allowed_actions=["actions/checkout", "actions/setup-node"],
        excluded_repos=["org/excluded-repo"],
        custom_rules={
            "org/custom-repo": Policy(allowed_actions=["actions/checkout", "custom/special-action"]),
        },
    )


@pytest.fixture
def make_actions():
    def _make(*uses: str) -> List[ObservedAction]:
        return [ObservedAction(name=f"step {i}", uses=u) for i, u in enumerate(uses)]
    return _make


class FakeProvider:
    """In-memory RepositoryContentProvider."""

    def __init__(
        self,
        repos: Optional[Dict[str, List[ObservedAction]]] = None,
        files: Optional[Dict[str, bytes]] = None,
        failing: Optional[Dict[str, Exception]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.repos = repos or {}
        self.files = files or {}
        self.failing = failing or {}
        self.delays = delays or {}
        self.content_requests: List[str] = []
        self.active = 0
        self.max_active = 0

    async def list_repositories(self, org: str) -> List[Repository]:
        return [
            Repository(name=full_name.split("/")[-1], full_name=full_name)
            for full_name in self.repos
        ]

    async def get_actions(self, owner: str, repo: str) -> List[ObservedAction]:
        full_name = f"{owner}/{repo}"
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(full_name, 0.01))
            if full_name in self.failing:
                raise self.failing[full_name]
            return list(self.repos.get(full_name, []))
        finally:
            self.active -= 1

    async def get_repository_content(self, owner: str, repo: str, path: str) -> Optional[bytes]:
        key = f"{owner}/{repo}:{path}"
        self.content_requests.append(key)
        error = self.failing.get(key)
        if error:
            raise error
        return self.files.get(key)


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def transport_error():
    return TransportError("boom", status_code=502)
