"""
Compliance checking of observed action references against a policy.
"""
import logging
from typing import List, Sequence, Tuple

from action_control.policy.models import EffectivePolicy, PolicyConfig, PolicyMode, infer_mode

logger = logging.getLogger(__name__)


def normalize_action(action: str) -> str:
    """
    Strip the version suffix from an action reference.

    Only the text after the last `@` is removed. Comparison stays
    case-sensitive: `Org/Action@v1` normalizes to `Org/Action`.
    """
    idx = action.rfind("@")
    return action[:idx] if idx != -1 else action


def resolve_effective_policy(policy: PolicyConfig, repo_name: str) -> EffectivePolicy:
    """
    Resolve the mode and action list that apply to one repository.

    A custom rule supplies its own mode (or inherits the global one). When the
    rule's list for that mode is empty the global list for the same mode is
    used instead; the list for the inactive mode is never consulted.
    """
    global_mode = policy.policy_mode or infer_mode(policy.allowed_actions, policy.denied_actions)

    rule = policy.custom_rules.get(repo_name)
    if rule is None:
        return EffectivePolicy(
            mode=global_mode,
            actions=tuple(policy.actions_for(global_mode)),
            source="global",
        )

    mode = rule.policy_mode or policy.policy_mode
    if mode is None:
        mode = infer_mode(rule.allowed_actions, rule.denied_actions, default=global_mode)

    actions = rule.actions_for(mode)
    source = "custom"
    if not actions:
        actions = policy.actions_for(mode)
        source = "custom+inherited"

    return EffectivePolicy(mode=mode, actions=tuple(actions), source=source)


def check_action_compliance(
    policy: PolicyConfig,
    repo_name: str,
    actions: Sequence[str],
) -> Tuple[List[str], bool]:
    """
    Check a repository's observed action references against a policy.

    Each reference matches a policy entry when either its exact text or its
    normalized form (version stripped) is listed. Entries in the policy are
    never normalized, so a pinned entry only matches that exact reference.

    Returns:
        (violations, compliant): violations keep the order of `actions`.
    """
    if policy.is_excluded(repo_name):
        logger.debug("Repository %s is excluded from enforcement", repo_name)
        return [], True

    effective = resolve_effective_policy(policy, repo_name)
    listed = set(effective.actions)

    violations = []
    for action in actions:
        matched = action in listed or normalize_action(action) in listed
        if effective.mode == PolicyMode.ALLOW and not matched:
            violations.append(action)
        elif effective.mode == PolicyMode.DENY and matched:
            violations.append(action)

    logger.debug(
        "Checked %d actions for %s against %s %s-mode policy: %d violations",
        len(actions),
        repo_name,
        effective.source,
        effective.mode.value,
        len(violations),
    )
    return violations, not violations
