from typing import Any

from pydantic import BaseModel, Field
from request_approval.domain.enums import IntentKind


class DecisionRequest(BaseModel):
    """Body of an approve or reject call."""

    note: str | None = Field(default=None, description="Optional note stored with the decision")


class EditRequest(BaseModel):
    """Catalogue fields to change on a pending request."""

    changes: dict[str, Any] = Field(..., description="Field names mapped to their new values")


class SelectRequest(BaseModel):
    """Set or toggle the selection of a row."""

    selected: bool | None = Field(default=None, description="Omit to toggle the current selection")


class SelectAllRequest(BaseModel):
    checked: bool = True


class BulkDecisionRequest(BaseModel):
    """Apply one decision to every selected row."""

    kind: IntentKind = Field(..., description="approve or reject")
    note: str | None = None


class ApplyFieldRequest(BaseModel):
    """Copy a field from the first visible row to the others."""

    field: str
