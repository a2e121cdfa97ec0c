import pytest

from action_control.exceptions import PolicyParseError
from action_control.policy import (
    PolicyConfig, PolicyMode, dump_policy, load_policy, load_policy_file, parse_policy_document,
)

POLICY_YAML = """
allowed_actions:
  - actions/checkout
  - actions/setup-node
excluded_repos:
  - org/test-repo
custom_rules:
  org/special-repo:
    allowed_actions:
      - actions/checkout
      - custom/action
"""


def test_load_policy_file(tmp_path):
    """Loads a policy file with global lists, exclusions and custom rules."""
    path = tmp_path / "policy.yaml"
    path.write_text(POLICY_YAML)

    policy = load_policy_file(path)

    assert policy.allowed_actions == ["actions/checkout", "actions/setup-node"]
    assert policy.excluded_repos == ["org/test-repo"]
    assert policy.custom_rules["org/special-repo"].allowed_actions == ["actions/checkout", "custom/action"]
    assert policy.custom_rules["org/special-repo"].policy_mode is None


def test_mode_inferred_as_allow_from_allowed_list():
    assert load_policy(POLICY_YAML).policy_mode == PolicyMode.ALLOW


def test_mode_inferred_as_deny_from_denied_list():
    policy = load_policy("denied_actions: [unsafe/action]")
    assert policy.policy_mode == PolicyMode.DENY


def test_mode_prefers_allow_when_both_lists_populated():
    policy = load_policy("allowed_actions: [a/b]\ndenied_actions: [c/d]")
    assert policy.policy_mode == PolicyMode.ALLOW


def test_empty_document_is_allow_mode_with_no_actions():
    policy = load_policy(b"")
    assert policy.policy_mode == PolicyMode.ALLOW
    assert policy.allowed_actions == []
    assert policy.custom_rules == {}


def test_explicit_mode_is_kept():
    policy = load_policy("policy_mode: deny\nallowed_actions: [a/b]")
    assert policy.policy_mode == PolicyMode.DENY


@pytest.mark.parametrize("raw", ["DENY", " Deny "])
def test_mode_is_case_insensitive(raw):
    assert load_policy(f"policy_mode: '{raw}'").policy_mode == PolicyMode.DENY


def test_blank_mode_is_inferred():
    policy = load_policy("policy_mode: ''\ndenied_actions: [x/y]")
    assert policy.policy_mode == PolicyMode.DENY


def test_parse_leaves_mode_unset():
    """The raw parse keeps an absent mode absent so merges can tell it apart."""
    assert parse_policy_document("allowed_actions: [a/b]").policy_mode is None


def test_null_lists_become_empty():
    policy = load_policy("allowed_actions:\nexcluded_repos:\ncustom_rules:\n  org/r:\n")
    assert policy.allowed_actions == []
    assert policy.excluded_repos == []
    assert policy.custom_rules["org/r"].allowed_actions == []


def test_duplicate_entries_are_dropped_in_order():
    policy = load_policy("allowed_actions: [b/b, a/a, b/b]")
    assert policy.allowed_actions == ["b/b", "a/a"]


def test_unknown_keys_are_ignored():
    policy = load_policy("allowed_actions: [a/b]\nowner: platform-team")
    assert policy.allowed_actions == ["a/b"]


@pytest.mark.parametrize("document", [
    "allowed_actions: [unclosed",
    "- just\n- a list",
    "policy_mode: block",
    "allowed_actions: 5",
    "custom_rules: [org/repo]",
])
def test_malformed_documents_raise_parse_error(document):
    with pytest.raises(PolicyParseError):
        load_policy(document)


def test_parse_error_names_source():
    with pytest.raises(PolicyParseError) as exc_info:
        load_policy("policy_mode: block", source="policy.yaml")
    assert "policy.yaml" in str(exc_info.value)
    assert exc_info.value.source == "policy.yaml"


def test_missing_file_raises_parse_error(tmp_path):
    with pytest.raises(PolicyParseError):
        load_policy_file(tmp_path / "nope.yaml")


def test_dump_uses_document_field_names():
    policy = PolicyConfig(policy_mode=PolicyMode.DENY, denied_actions=["x/y"])
    text = dump_policy(policy, header="# header\n")

    assert text.startswith("# header\n")
    assert "policy_mode: deny" in text
    assert "denied_actions:\n- x/y" in text
    assert load_policy(text) == policy
