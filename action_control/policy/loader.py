"""
Policy document loading and serialization.
"""
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from action_control.exceptions import PolicyParseError
from action_control.policy.models import PolicyConfig

logger = logging.getLogger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    issues = []
    for err in error.errors():
        path = "/".join(str(part) for part in err.get("loc", ())) or "<root>"
        issues.append(f"{path}: {err.get('msg')}")
    return "; ".join(issues)


def parse_policy_document(data: Union[bytes, str], source: Optional[str] = None) -> PolicyConfig:
    """
    Deserialize a policy document without filling in defaults.

    `policy_mode` is left as written (possibly None) so callers such as the
    merge engine can tell an explicit mode from an inferred one. An empty
    document parses to an empty PolicyConfig.

    Raises:
        PolicyParseError: If the document is not a well-formed YAML mapping
            matching the policy schema.
    """
    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise PolicyParseError(f"invalid YAML: {e}", source) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise PolicyParseError(
            f"policy document must be a mapping, got {type(raw).__name__}", source
        )

    try:
        return PolicyConfig.model_validate(raw)
    except ValidationError as e:
        raise PolicyParseError(_format_validation_error(e), source) from e


def load_policy(data: Union[bytes, str], source: Optional[str] = None) -> PolicyConfig:
    """Parse a policy document and infer its mode when unspecified."""
    return parse_policy_document(data, source).with_inferred_mode()


def load_policy_file(path: Union[str, Path]) -> PolicyConfig:
    """Read and parse a policy file from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise PolicyParseError(f"failed to read policy file: {e}", str(path)) from e

    policy = load_policy(data, str(path))
    logger.debug(
        "Loaded %s-mode policy from %s (%d allowed, %d denied, %d custom rules)",
        policy.policy_mode.value,
        path,
        len(policy.allowed_actions),
        len(policy.denied_actions),
        len(policy.custom_rules),
    )
    return policy


def dump_policy(policy: PolicyConfig, header: str = "") -> str:
    """Serialize a policy to YAML, optionally prefixed with a comment header."""
    body = yaml.safe_dump(
        policy.to_document(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
    return f"{header}{body}"
