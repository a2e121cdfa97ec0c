from typing import Any, Dict, List

from action_control.policy.models import PolicyMode, infer_mode


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _mode_of(doc: Dict[str, Any], default: PolicyMode) -> PolicyMode:
    raw = doc.get("policy_mode")
    if raw:
        try:
            return PolicyMode(str(raw).strip().lower())
        except ValueError:
            return default
    return infer_mode(
        _as_list(doc.get("allowed_actions")),
        _as_list(doc.get("denied_actions")),
        default=default,
    )


def _lint_entries(label: str, entries: List[Any], errors: List[str], warnings: List[str]) -> None:
    for i, entry in enumerate(entries):
        if not isinstance(entry, str) or not entry.strip():
            errors.append(f"{label} entry {i+1} is blank.")
        elif "@" in entry:
            warnings.append(
                f"{label} entry '{entry}' is pinned; it only matches that exact reference."
            )


def _lint_rule(label: str, doc: Dict[str, Any], mode: PolicyMode,
               errors: List[str], warnings: List[str]) -> None:
    raw_mode = doc.get("policy_mode")
    if raw_mode and str(raw_mode).strip().lower() not in ("allow", "deny"):
        errors.append(f"{label}: invalid policy_mode '{raw_mode}'.")

    allowed = _as_list(doc.get("allowed_actions"))
    denied = _as_list(doc.get("denied_actions"))
    _lint_entries(f"{label} allowed_actions", allowed, errors, warnings)
    _lint_entries(f"{label} denied_actions", denied, errors, warnings)

    if mode == PolicyMode.ALLOW and denied:
        warnings.append(f"{label}: denied_actions is ignored in allow mode.")
    if mode == PolicyMode.DENY and allowed:
        warnings.append(f"{label}: allowed_actions is ignored in deny mode.")


def lint_policy(policy: Any) -> Dict[str, List[str]]:
    """
    Tolerant linter for policy documents.

    Accepts a PolicyConfig or the raw mapping loaded from YAML and returns a
    consistent {"errors": [], "warnings": []} structure.
    """
    try:
        if hasattr(policy, "to_document"):
            doc = policy.to_document()
        elif isinstance(policy, dict):
            doc = policy
        else:
            doc = dict(policy or {})
    except (TypeError, ValueError):
        doc = {}

    errors: List[str] = []
    warnings: List[str] = []

    mode = _mode_of(doc, PolicyMode.ALLOW)
    _lint_rule("global", doc, mode, errors, warnings)

    if mode == PolicyMode.ALLOW and not _as_list(doc.get("allowed_actions")):
        warnings.append("Allow mode with an empty allowed_actions list; every action will be a violation.")

    excluded = [str(r) for r in _as_list(doc.get("excluded_repos"))]
    for repo in excluded:
        if len(repo.split("/")) != 2:
            warnings.append(f"Excluded repository '{repo}' is not in owner/repo form and will never match.")

    rules = doc.get("custom_rules") or {}
    if not isinstance(rules, dict):
        errors.append("custom_rules must be a mapping of owner/repo to rules.")
        rules = {}

    for repo, rule in rules.items():
        repo = str(repo)
        parts = repo.split("/")
        if len(parts) != 2 or not all(parts):
            errors.append(f"Custom rule key '{repo}' is not in owner/repo form.")
        if repo in excluded:
            warnings.append(f"Repository '{repo}' is excluded; its custom rule never applies.")
        if rule is None:
            rule = {}
        if not isinstance(rule, dict):
            errors.append(f"Custom rule for '{repo}' is not an object.")
            continue
        raw_mode = rule.get("policy_mode")
        rule_mode = mode
        if raw_mode:
            rule_mode = _mode_of(rule, mode)
        _lint_rule(f"custom rule '{repo}'", rule, rule_mode, errors, warnings)

    return {"errors": errors, "warnings": warnings}
