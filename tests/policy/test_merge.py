import pytest

from action_control.exceptions import PolicyParseError
from action_control.policy import Policy, PolicyConfig, PolicyMode, merge_repo_policy


@pytest.fixture
def global_policy():
    return PolicyConfig(
        policy_mode=PolicyMode.ALLOW,
        allowed_actions=["actions/checkout", "actions/setup-node"],
        excluded_repos=["org/excluded-repo"],
        custom_rules={
            "org/custom-repo": Policy(allowed_actions=["actions/checkout", "custom/action"]),
        },
    )


def test_named_custom_rule_is_applied(global_policy):
    override = """
allowed_actions:
  - actions/special-action
custom_rules:
  org/test-repo:
    allowed_actions:
      - repo/specific-action
"""
    merged = merge_repo_policy(global_policy, override.encode(), "org/test-repo")

    assert merged.allowed_actions == ["actions/checkout", "actions/setup-node"]
    assert merged.excluded_repos == ["org/excluded-repo"]
    assert merged.custom_rules["org/test-repo"].allowed_actions == ["repo/specific-action"]
    assert merged.custom_rules["org/custom-repo"] == global_policy.custom_rules["org/custom-repo"]


def test_named_rule_replaces_instead_of_merging(global_policy):
    global_policy.custom_rules["org/test-repo"] = Policy(
        policy_mode=PolicyMode.ALLOW, allowed_actions=["a/a", "b/b"], denied_actions=["x/x"]
    )
    override = "custom_rules:\n  org/test-repo:\n    allowed_actions: [c/c]\n"

    merged = merge_repo_policy(global_policy, override, "org/test-repo")

    rule = merged.custom_rules["org/test-repo"]
    assert rule.allowed_actions == ["c/c"]
    assert rule.denied_actions == []
    assert rule.policy_mode is None


def test_flat_override_becomes_custom_rule(global_policy):
    merged = merge_repo_policy(global_policy, "allowed_actions: [repo/local]", "org/test-repo")

    rule = merged.custom_rules["org/test-repo"]
    assert rule.policy_mode == PolicyMode.ALLOW
    assert rule.allowed_actions == ["repo/local"]
    assert merged.allowed_actions == global_policy.allowed_actions


def test_flat_deny_override_infers_deny(global_policy):
    merged = merge_repo_policy(global_policy, "denied_actions: [bad/action]", "org/test-repo")

    rule = merged.custom_rules["org/test-repo"]
    assert rule.policy_mode == PolicyMode.DENY
    assert rule.denied_actions == ["bad/action"]


def test_flat_override_explicit_mode_wins(global_policy):
    override = "policy_mode: deny\nallowed_actions: [a/a]\ndenied_actions: [b/b]"
    merged = merge_repo_policy(global_policy, override, "org/test-repo")

    assert merged.custom_rules["org/test-repo"].policy_mode == PolicyMode.DENY


def test_override_for_other_repository_changes_nothing(global_policy):
    override = "custom_rules:\n  org/someone-else:\n    allowed_actions: [x/x]\n"
    merged = merge_repo_policy(global_policy, override, "org/test-repo")

    assert merged == global_policy


def test_named_rule_takes_precedence_over_flat_lists(global_policy):
    override = """
allowed_actions: [flat/action]
custom_rules:
  org/test-repo:
    denied_actions: [named/action]
"""
    merged = merge_repo_policy(global_policy, override, "org/test-repo")

    assert merged.custom_rules["org/test-repo"].denied_actions == ["named/action"]
    assert merged.custom_rules["org/test-repo"].allowed_actions == []


@pytest.mark.parametrize("override", [None, b"", ""])
def test_no_override_returns_equal_copy(global_policy, override):
    merged = merge_repo_policy(global_policy, override, "org/test-repo")

    assert merged == global_policy
    assert merged is not global_policy


def test_global_policy_is_not_mutated(global_policy):
    before = global_policy.model_copy(deep=True)
    merge_repo_policy(global_policy, "allowed_actions: [repo/local]", "org/custom-repo")

    assert global_policy == before


def test_merge_is_idempotent(global_policy):
    override = "denied_actions: [bad/action]"
    once = merge_repo_policy(global_policy, override, "org/test-repo")
    twice = merge_repo_policy(once, override, "org/test-repo")

    assert once == twice


def test_malformed_override_raises(global_policy):
    with pytest.raises(PolicyParseError):
        merge_repo_policy(global_policy, b"allowed_actions: [", "org/test-repo")
