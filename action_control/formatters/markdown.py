"""
Markdown rendering for usage and violation reports.
"""
from collections import Counter
from typing import Mapping, Sequence, Union

from action_control.policy.models import ObservedAction, PolicyMode

TOP_ACTIONS_LIMIT = 20


def format_actions_report(data: Mapping[str, Sequence[ObservedAction]]) -> str:
    """Format discovered actions as a per-repository Markdown report."""
    lines = ["# GitHub Actions Usage Report", "", "## Actions by Repository", ""]
    usage: Counter = Counter()

    for repo in sorted(data):
        actions = data[repo]
        if not actions:
            continue

        lines.append(f"### {repo}")
        lines.append("")
        lines.append("| Action Name | Action Reference |")
        lines.append("|------------|------------------|")
        for action in actions:
            usage[action.uses] += 1
            lines.append(f"| {action.name or '_Unnamed_'} | `{action.uses}` |")
        lines.append("")

    lines.append("## Most Used Actions")
    lines.append("")
    lines.append("| Action | Usage Count |")
    lines.append("|--------|------------|")

    ranked = sorted(usage.items(), key=lambda item: (-item[1], item[0]))
    for uses, count in ranked[:TOP_ACTIONS_LIMIT]:
        lines.append(f"| `{uses}` | {count} |")

    return "\n".join(lines) + "\n"


def format_policy_violations(
    violations: Mapping[str, Sequence[str]],
    policy_mode: Union[PolicyMode, str],
) -> str:
    """Format enforcement results; wording follows the policy mode."""
    if not violations:
        return "✅ All repositories comply with the action policy."

    deny = PolicyMode(policy_mode) == PolicyMode.DENY

    lines = ["# Policy Violation Report", ""]
    lines.append("## ❌ Denied Actions Found" if deny else "## ❌ Policy Violations")
    lines.append("")

    for repo in sorted(violations):
        lines.append(f"### {repo}")
        lines.append("")
        if deny:
            lines.append("The following denied actions were found:")
        else:
            lines.append("The following actions are not allowed by policy:")
        lines.append("")
        for action in violations[repo]:
            lines.append(f"- `{action}`")
        lines.append("")

    if deny:
        lines.append(f"Found {len(violations)} repositories using denied actions.")
    else:
        lines.append(f"Found {len(violations)} repositories with policy violations.")

    return "\n".join(lines) + "\n"
