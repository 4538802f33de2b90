"""
Workflow Validation Results — structured issues instead of raw strings.

``WorkflowEngine.validate_workflow`` reports every problem it finds
as a ``ValidationIssue`` so callers can filter by code or block, while
``ValidationResult.errors`` keeps the exact banner text the editor
shows.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from blockflow.workflow.workflow_model import ConfigFieldSchema, WorkflowBlock


class IssueCode(str, Enum):
    """Kind of problem found during validation."""
    DISCONNECTED_BLOCKS = "disconnected_blocks"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    CIRCULAR_DEPENDENCY = "circular_dependency"


class ValidationIssue(BaseModel):
    """One validation problem."""

    model_config = ConfigDict(frozen=True)

    code: IssueCode
    message: str
    block_ids: List[str] = Field(default_factory=list)
    field_key: Optional[str] = None
    field_label: Optional[str] = None
    count: Optional[int] = None

    @classmethod
    def disconnected(cls, blocks: Sequence[WorkflowBlock]) -> "ValidationIssue":
        return cls(
            code=IssueCode.DISCONNECTED_BLOCKS,
            message=f"Found {len(blocks)} disconnected blocks",
            block_ids=[b.id for b in blocks],
            count=len(blocks),
        )

    @classmethod
    def missing_field(
        cls, block: WorkflowBlock, key: str, field: ConfigFieldSchema,
    ) -> "ValidationIssue":
        return cls(
            code=IssueCode.MISSING_REQUIRED_FIELD,
            message=f'Block "{block.name}" is missing required field: {field.label}',
            block_ids=[block.id],
            field_key=key,
            field_label=field.label,
        )

    @classmethod
    def circular(cls) -> "ValidationIssue":
        return cls(
            code=IssueCode.CIRCULAR_DEPENDENCY,
            message="Workflow contains circular dependencies",
        )


class ValidationResult(BaseModel):
    """Outcome of a validation run. Valid means no issues."""

    model_config = ConfigDict(frozen=True)

    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.issues) == 0

    @property
    def errors(self) -> List[str]:
        return [issue.message for issue in self.issues]

    def issues_for_block(self, block_id: str) -> List[ValidationIssue]:
        return [i for i in self.issues if block_id in i.block_ids]

    def issues_with_code(self, code: IssueCode) -> List[ValidationIssue]:
        return [i for i in self.issues if i.code == code]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the shape the editor's error banner expects."""
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
        }
