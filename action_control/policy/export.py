"""
Policy export: synthesize a policy document from observed action usage.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Union

from action_control.exceptions import InvalidInputError
from action_control.policy.loader import dump_policy
from action_control.policy.models import ObservedAction, Policy, PolicyConfig, PolicyMode

logger = logging.getLogger(__name__)

POLICY_HEADER = """\
# GitHub Action Control Policy
# Generated automatically by action-control
#
# This file defines policy for GitHub Actions in your repositories.
#
# Policy can work in two modes:
#   - allow: Only listed actions are allowed (default)
#   - deny: All actions are allowed except listed ones
#
# allowed_actions: Actions explicitly allowed (used in allow mode)
# denied_actions: Actions explicitly denied (used in deny mode)
# policy_mode: Which mode to use ("allow" or "deny")
# excluded_repos: Repositories excluded from policy enforcement
# custom_rules: Repository-specific action rules

"""


def parse_policy_mode(value: Union[str, PolicyMode]) -> PolicyMode:
    """Validate a user-supplied policy mode string."""
    if isinstance(value, PolicyMode):
        return value
    try:
        return PolicyMode(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(
            f"Invalid policy mode: {value!r}, must be 'allow' or 'deny'"
        ) from None


def export_action_name(action: str, include_version: bool) -> str:
    """Drop the `@version` suffix unless versions are being kept."""
    if not include_version and "@" in action:
        return action[:action.rfind("@")]
    return action


class PolicyExporter:
    """
    Builds allow- or deny-mode policies from discovered actions.

    The mode is validated on construction so a bad value is rejected before
    any repository is scanned.
    """

    def __init__(
        self,
        policy_mode: Union[str, PolicyMode] = PolicyMode.ALLOW,
        include_versions: bool = False,
        include_custom: bool = False,
    ):
        self.policy_mode = parse_policy_mode(policy_mode)
        self.include_versions = include_versions
        self.include_custom = include_custom

    def _names(self, actions: Iterable[ObservedAction]) -> List[str]:
        return sorted({export_action_name(a.uses, self.include_versions) for a in actions})

    def _fragment(self, names: List[str]) -> Dict[str, List[str]]:
        if self.policy_mode == PolicyMode.ALLOW:
            return {"allowed_actions": names, "denied_actions": []}
        return {"allowed_actions": [], "denied_actions": names}

    def generate_policy(self, actions_by_repo: Mapping[str, Sequence[ObservedAction]]) -> PolicyConfig:
        """
        Create a policy from a mapping of repository -> observed actions.

        The global list is the sorted, de-duplicated union of every
        repository's actions. With `include_custom`, each repository also gets
        a custom rule holding only its own actions.
        """
        all_actions = [a for actions in actions_by_repo.values() for a in actions]

        custom_rules: Dict[str, Policy] = {}
        if self.include_custom:
            for repo in sorted(actions_by_repo):
                custom_rules[repo] = Policy(
                    policy_mode=self.policy_mode,
                    **self._fragment(self._names(actions_by_repo[repo])),
                )

        policy = PolicyConfig(
            policy_mode=self.policy_mode,
            excluded_repos=[],
            custom_rules=custom_rules,
            **self._fragment(self._names(all_actions)),
        )

        logger.info(
            "Generated %s-mode policy with %d actions from %d repositories",
            self.policy_mode.value,
            len(policy.actions_for(self.policy_mode)),
            len(actions_by_repo),
        )
        return policy

    def write_policy(self, policy: PolicyConfig, destination: Union[str, Path]) -> Path:
        """
        Serialize `policy` and atomically replace `destination` with it.

        Parent directories are created as needed. OSError propagates.
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        content = dump_policy(policy, header=POLICY_HEADER)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, destination)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

        logger.info("Wrote policy file to %s", destination)
        return destination
