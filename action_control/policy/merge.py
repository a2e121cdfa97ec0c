"""
Repository override merging.

A repository may carry its own policy file (by default
`.github/action-control-policy.yaml`). Two shapes are accepted:

- a full document whose `custom_rules` names the repository explicitly, and
- a flat document whose top-level `allowed_actions` / `denied_actions`
  apply to the repository that contains it.

Either way the result is a new PolicyConfig in which the repository's
custom rule is replaced wholesale; global lists, exclusions and every other
repository's rules pass through untouched.
"""
import logging
from typing import Optional, Union

from action_control.policy.loader import parse_policy_document
from action_control.policy.models import Policy, PolicyConfig, PolicyMode, infer_mode

logger = logging.getLogger(__name__)


def merge_repo_policy(
    global_policy: PolicyConfig,
    override_data: Optional[Union[bytes, str]],
    repo_name: str,
) -> PolicyConfig:
    """
    Merge a repository-local override document into the global policy.

    Args:
        global_policy: Policy loaded from the global document. Never mutated.
        override_data: Raw override document; None or empty means no override.
        repo_name: Full name (owner/repo) of the repository being evaluated.

    Returns:
        The effective PolicyConfig for `repo_name`.

    Raises:
        PolicyParseError: If the override document is malformed.
    """
    merged = global_policy.model_copy(deep=True)
    if not override_data:
        return merged

    override = parse_policy_document(override_data, source=f"{repo_name} override")

    rule = override.custom_rules.get(repo_name)
    if rule is not None:
        logger.debug("Override for %s supplies a named custom rule", repo_name)
        merged.custom_rules[repo_name] = rule.model_copy(deep=True)
    elif override.allowed_actions or override.denied_actions:
        fallback = global_policy.policy_mode or PolicyMode.ALLOW
        mode = override.policy_mode or infer_mode(
            override.allowed_actions, override.denied_actions, default=fallback
        )
        logger.debug("Override for %s is a flat %s-mode policy", repo_name, mode.value)
        merged.custom_rules[repo_name] = Policy(
            policy_mode=mode,
            allowed_actions=list(override.allowed_actions),
            denied_actions=list(override.denied_actions),
        )
    else:
        logger.debug("Override for %s has no rule for this repository", repo_name)

    return merged
