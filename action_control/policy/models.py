"""
Policy Models.

Pydantic models for the policy document (global policy, per-repository custom
rules and repository-local overrides) plus the small value types the checker
and exporter pass around.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PolicyMode(str, Enum):
    """Policy stance enumeration."""
    ALLOW = "allow"
    DENY = "deny"


def infer_mode(
    allowed_actions: List[str],
    denied_actions: List[str],
    default: PolicyMode = PolicyMode.ALLOW,
) -> PolicyMode:
    """
    Infer the policy mode from which action list is populated.

    The allow list wins when both are populated; `default` applies when
    neither is.
    """
    if allowed_actions:
        return PolicyMode.ALLOW
    if denied_actions:
        return PolicyMode.DENY
    return default


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class Policy(BaseModel):
    """Repository-scoped policy fragment (one entry of `custom_rules`)."""

    model_config = ConfigDict(extra="ignore")

    policy_mode: Optional[PolicyMode] = Field(default=None, description="allow or deny; inferred when absent")
    allowed_actions: List[str] = Field(default_factory=list, description="Actions permitted in allow mode")
    denied_actions: List[str] = Field(default_factory=list, description="Actions forbidden in deny mode")

    @field_validator("policy_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("allowed_actions", "denied_actions", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        # `allowed_actions:` with no entries loads as None
        return [] if value is None else value

    @field_validator("allowed_actions", "denied_actions")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return _unique(value)

    def actions_for(self, mode: PolicyMode) -> List[str]:
        """Return the list that is authoritative for `mode`."""
        return self.allowed_actions if mode == PolicyMode.ALLOW else self.denied_actions

    def to_document(self) -> Dict[str, Any]:
        """Plain-data form matching the YAML document layout."""
        doc: Dict[str, Any] = {}
        if self.policy_mode is not None:
            doc["policy_mode"] = self.policy_mode.value
        doc["allowed_actions"] = list(self.allowed_actions)
        doc["denied_actions"] = list(self.denied_actions)
        return doc


class PolicyConfig(Policy):
    """Document-level policy: global lists, exclusions and custom rules."""

    excluded_repos: List[str] = Field(default_factory=list, description="Repositories exempt from enforcement")
    custom_rules: Dict[str, Policy] = Field(default_factory=dict, description="Per-repository overrides keyed by owner/repo")

    @field_validator("excluded_repos", mode="before")
    @classmethod
    def _coerce_excluded(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("excluded_repos")
    @classmethod
    def _dedupe_excluded(cls, value: List[str]) -> List[str]:
        return _unique(value)

    @field_validator("custom_rules", mode="before")
    @classmethod
    def _coerce_rules(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: ({} if rule is None else rule) for key, rule in value.items()}
        return value

    def with_inferred_mode(self) -> "PolicyConfig":
        """Return a copy whose `policy_mode` is always set."""
        if self.policy_mode is not None:
            return self
        mode = infer_mode(self.allowed_actions, self.denied_actions)
        return self.model_copy(update={"policy_mode": mode})

    def is_excluded(self, repo_name: str) -> bool:
        return repo_name in self.excluded_repos

    def to_document(self) -> Dict[str, Any]:
        doc = super().to_document()
        doc["excluded_repos"] = list(self.excluded_repos)
        doc["custom_rules"] = {
            repo: rule.to_document() for repo, rule in self.custom_rules.items()
        }
        return doc


class ObservedAction(BaseModel):
    """An action reference found in a repository's workflow definitions."""
    name: str = Field(default="", description="Step name, or '<workflow> (job: <id>)' for reusable workflows")
    uses: str = Field(description="Action reference, e.g. actions/checkout@v4")


@dataclass(frozen=True)
class EffectivePolicy:
    """Fully resolved mode and action list for one repository."""
    mode: PolicyMode
    actions: Tuple[str, ...]
    source: str = "global"
