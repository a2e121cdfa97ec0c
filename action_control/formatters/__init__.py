from .json_report import format_json
from .markdown import format_actions_report, format_policy_violations

__all__ = ["format_json", "format_actions_report", "format_policy_violations"]
