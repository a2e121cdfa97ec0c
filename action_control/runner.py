"""
Orchestration of report, enforce and export runs.

The runner fetches observed actions per repository from a
RepositoryContentProvider, then hands them to the policy engine. Repository
fetches run concurrently under a semaphore, each bounded by a timeout; one
slow or failing repository is logged and skipped instead of failing the run.

Note that a repository skipped because of a fetch failure does not appear in
the results at all, so in an enforce report it cannot be told apart from a
compliant one. Check the warnings in the log when the numbers look low.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from action_control.exceptions import InvalidInputError, PolicyParseError, TransportError
from action_control.github.base import RepositoryContentProvider
from action_control.policy.compliance import check_action_compliance
from action_control.policy.export import PolicyExporter
from action_control.policy.merge import merge_repo_policy
from action_control.policy.models import ObservedAction, PolicyConfig, PolicyMode

logger = logging.getLogger(__name__)

ActionsByRepo = Dict[str, List[ObservedAction]]


def parse_repo_target(value: str) -> Tuple[str, str]:
    """
    Split an owner/repo string.

    Raises:
        InvalidInputError: If the value is not exactly two non-empty parts.
    """
    parts = value.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidInputError(f"Invalid repository format {value!r}. Use 'owner/repo' format.")
    return parts[0], parts[1]


@dataclass
class EnforcementResult:
    """Outcome of an enforce run across one or more repositories."""
    policy_mode: PolicyMode
    violations: Dict[str, List[str]] = field(default_factory=dict)
    checked: List[str] = field(default_factory=list)

    @property
    def compliant(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, object]:
        return {
            "policy_mode": self.policy_mode.value,
            "compliant": self.compliant,
            "checked": sorted(self.checked),
            "violations": {repo: self.violations[repo] for repo in sorted(self.violations)},
        }


class ActionControlRunner:
    """
    Drives the provider and the policy engine for a batch of repositories.
    """

    def __init__(
        self,
        provider: RepositoryContentProvider,
        *,
        max_concurrency: int = 8,
        fetch_timeout: float = 60.0,
        local_policy_path: str = ".github/action-control-policy.yaml",
    ):
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.fetch_timeout = fetch_timeout
        self.local_policy_path = local_policy_path

    async def collect_actions(
        self,
        organization: Optional[str] = None,
        repository: Optional[str] = None,
    ) -> ActionsByRepo:
        """
        Fetch observed actions for a single repository or a whole organization.

        For a single repository any failure is raised. For an organization,
        only a failure to list repositories is raised; per-repository failures
        are logged and the repository omitted.
        """
        if repository:
            owner, repo = parse_repo_target(repository)
            logger.info("Scanning repository %s", repository)
            actions = await asyncio.wait_for(
                self.provider.get_actions(owner, repo), timeout=self.fetch_timeout
            )
            return {repository: actions} if actions else {}

        if not organization:
            raise InvalidInputError("Either an organization or a repository is required.")

        logger.info("Scanning repositories in %s organization", organization)
        repos = await self.provider.list_repositories(organization)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch_with_semaphore(full_name: str) -> List[ObservedAction]:
            owner, repo = parse_repo_target(full_name)
            async with semaphore:
                return await asyncio.wait_for(
                    self.provider.get_actions(owner, repo), timeout=self.fetch_timeout
                )

        names = [r.full_name for r in repos]
        results = await asyncio.gather(
            *(fetch_with_semaphore(name) for name in names), return_exceptions=True
        )

        collected: ActionsByRepo = {}
        for name, result in zip(names, results):
            if isinstance(result, InvalidInputError):
                logger.warning("Skipping repository with malformed name %r", name)
            elif isinstance(result, asyncio.TimeoutError):
                logger.warning("Timed out fetching actions for %s; skipping", name)
            elif isinstance(result, TransportError):
                logger.warning("Error retrieving actions for %s: %s; skipping", name, result)
            elif isinstance(result, BaseException):
                raise result
            else:
                collected[name] = result

        logger.info("Collected actions from %d of %d repositories", len(collected), len(names))
        return collected

    async def _repo_policy(
        self, policy: PolicyConfig, full_name: str, ignore_local_policy: bool
    ) -> PolicyConfig:
        if ignore_local_policy:
            return policy

        owner, repo = parse_repo_target(full_name)
        try:
            override = await asyncio.wait_for(
                self.provider.get_repository_content(owner, repo, self.local_policy_path),
                timeout=self.fetch_timeout,
            )
        except (TransportError, asyncio.TimeoutError) as e:
            logger.warning("Could not fetch policy file in repository %s: %s", full_name, e)
            return policy

        if not override:
            return policy

        try:
            return merge_repo_policy(policy, override, full_name)
        except PolicyParseError as e:
            logger.warning("Could not parse policy file in repository %s: %s", full_name, e)
            return policy

    async def evaluate(
        self,
        policy: PolicyConfig,
        actions_by_repo: Mapping[str, Sequence[ObservedAction]],
        *,
        ignore_local_policy: bool = False,
    ) -> EnforcementResult:
        """
        Check every repository's actions against the policy.

        Repository overrides are fetched concurrently; the compliance checks
        themselves are pure and results are aggregated here, in one place.
        """
        policy = policy.with_inferred_mode()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def check(full_name: str) -> Tuple[List[str], bool]:
            async with semaphore:
                repo_policy = await self._repo_policy(policy, full_name, ignore_local_policy)
            uses = [a.uses for a in actions_by_repo[full_name]]
            return check_action_compliance(repo_policy, full_name, uses)

        names = []
        for full_name in actions_by_repo:
            try:
                parse_repo_target(full_name)
            except InvalidInputError:
                logger.warning("Skipping repository with malformed name %r", full_name)
                continue
            names.append(full_name)

        outcomes = await asyncio.gather(*(check(name) for name in names))

        result = EnforcementResult(policy_mode=policy.policy_mode)
        for name, (violations, compliant) in zip(names, outcomes):
            result.checked.append(name)
            if not compliant:
                result.violations[name] = violations

        logger.info(
            "Checked %d repositories: %d with violations", len(result.checked), len(result.violations)
        )
        return result

    def export(
        self,
        actions_by_repo: Mapping[str, Sequence[ObservedAction]],
        exporter: PolicyExporter,
        destination: Union[str, Path],
    ) -> PolicyConfig:
        """Generate a policy from observed actions and write it to `destination`."""
        policy = exporter.generate_policy(actions_by_repo)
        exporter.write_policy(policy, destination)
        return policy
