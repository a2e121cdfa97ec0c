"""
Workflow file parsing.

Workflow documents are validated against a small pydantic schema that only
describes the parts action-control reads: the workflow name, job-level `uses`
(reusable workflows) and step-level `uses`.
"""
import logging
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from action_control.exceptions import WorkflowParseError
from action_control.policy.models import ObservedAction

logger = logging.getLogger(__name__)


class WorkflowStep(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    uses: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _stringify_name(cls, value: Any) -> Any:
        return None if value is None else str(value)


class WorkflowJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uses: Optional[str] = None
    steps: List[WorkflowStep] = Field(default_factory=list)

    @field_validator("steps", mode="before")
    @classmethod
    def _coerce_steps(cls, value: Any) -> Any:
        return [] if value is None else value


class Workflow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    jobs: Dict[str, WorkflowJob] = Field(default_factory=dict)

    @field_validator("name", mode="before")
    @classmethod
    def _stringify_name(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @field_validator("jobs", mode="before")
    @classmethod
    def _coerce_jobs(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(job_id): ({} if job is None else job) for job_id, job in value.items()}
        return value


def extract_actions_from_workflow(content: bytes, filename: str) -> List[ObservedAction]:
    """
    Extract action references from a single workflow file.

    Raises:
        WorkflowParseError: If the file is not YAML or does not match the
            workflow shape.
    """
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise WorkflowParseError(f"failed to parse workflow file {filename}: {e}") from e

    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise WorkflowParseError(f"workflow file {filename} is not a mapping")

    try:
        workflow = Workflow.model_validate({"name": raw.get("name"), "jobs": raw.get("jobs")})
    except ValidationError as e:
        raise WorkflowParseError(f"invalid workflow file {filename}: {e}") from e

    workflow_name = workflow.name or ""
    actions: List[ObservedAction] = []
    for job_id, job in workflow.jobs.items():
        if job.uses:
            actions.append(ObservedAction(name=f"{workflow_name} (job: {job_id})".strip(), uses=job.uses))
        for step in job.steps:
            if step.uses:
                actions.append(ObservedAction(name=step.name or "", uses=step.uses))

    logger.debug("Found %d action references in %s", len(actions), filename)
    return actions
