"""
Policy engine for action-control.

This package provides:
- Pydantic models for policy documents and custom rules
- Loading and serialization of YAML policy documents
- Merging of repository-local override files
- Compliance checking of observed action references
- Export of new policies from observed usage
- A tolerant policy linter
"""

from .models import PolicyMode, Policy, PolicyConfig, ObservedAction, EffectivePolicy, infer_mode
from .loader import parse_policy_document, load_policy, load_policy_file, dump_policy
from .merge import merge_repo_policy
from .compliance import check_action_compliance, normalize_action, resolve_effective_policy
from .export import PolicyExporter, parse_policy_mode, POLICY_HEADER
from .linter import lint_policy

__all__ = [
    "PolicyMode", "Policy", "PolicyConfig", "ObservedAction", "EffectivePolicy",
    "infer_mode", "parse_policy_document", "load_policy", "load_policy_file",
    "dump_policy", "merge_repo_policy", "check_action_compliance",
    "normalize_action", "resolve_effective_policy", "PolicyExporter",
    "parse_policy_mode", "POLICY_HEADER", "lint_policy",
]
