"""
Pydantic schemas for form session API request/response validation.

Provides data validation and serialization for:
- Opening new/edit form sessions
- Updating attribute values, target types and selections
- Opening and submitting nested creation contexts
- Form session and submitted record responses
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from panel.src.schemas.association import CandidateResponse
from panel.src.services.form_state import CreationContext, FormSession


# ============================================================================
# Request Schemas
# ============================================================================


class FormSessionCreate(BaseModel):
    """
    Schema for opening a form session.

    Example:
        >>> FormSessionCreate(resource="comments")
        >>> FormSessionCreate(resource="fish", record_id="fsh_01hgw2bbg...")
    """

    resource: str = Field(..., min_length=1, description="Resource route name (e.g. course_links)")
    record_id: Optional[str] = Field(
        default=None,
        description="GUID of the record to edit; omit for a new record",
    )


class FormValuesUpdate(BaseModel):
    """Attribute values to merge into the form."""

    values: Dict[str, Any] = Field(..., description="Attribute name -> value")


class TargetTypeUpdate(BaseModel):
    """Target type chosen for a polymorphic field."""

    target_type: str = Field(..., min_length=1)


class SelectionUpdate(BaseModel):
    """Record chosen in a belongs-to field (null clears it)."""

    record_id: Optional[str] = None


class CreationOpenRequest(BaseModel):
    """Opens a nested creation form; target_type defaults to the field's chosen type."""

    target_type: Optional[str] = None


class CreationSubmitRequest(BaseModel):
    """Input of the nested creation form."""

    fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "example": {"fields": {"name": "Test post"}}
        }
    }


# ============================================================================
# Response Schemas
# ============================================================================


class FieldSelectionResponse(BaseModel):
    """Selection state of one belongs-to field."""

    target_type: Optional[str] = None
    record_id: Optional[str] = None
    label: Optional[str] = None
    state: str


class CreationContextResponse(BaseModel):
    """State of a nested creation context."""

    guid: str
    relation_name: str
    target_type: str
    status: str
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    record: Optional[CandidateResponse] = None

    @classmethod
    def from_context(cls, context: CreationContext) -> "CreationContextResponse":
        return cls(
            guid=context.guid,
            relation_name=context.relation_name,
            target_type=context.target_type.value,
            status=context.status.value,
            errors=context.errors,
            record=CandidateResponse.from_candidate(context.record) if context.record else None,
        )


class FormSessionResponse(BaseModel):
    """
    Form session state.

    Example:
        {
          "guid": "frm_01hgw2bbg...",
          "resource": "comments",
          "record_id": null,
          "values": {"body": "Test comment"},
          "fields": {
            "commentable": {"target_type": "post", "record_id": "pst_...",
                            "label": "Test post", "state": "selected"}
          },
          "creations": [],
          "expires_at": "2026-10-19T11:30:00"
        }
    """

    guid: str
    resource: str
    record_id: Optional[str] = None
    values: Dict[str, Any]
    fields: Dict[str, FieldSelectionResponse]
    creations: List[CreationContextResponse]
    expires_at: datetime

    @classmethod
    def from_session(cls, session: FormSession, route_name: str) -> "FormSessionResponse":
        return cls(
            guid=session.guid,
            resource=route_name,
            record_id=session.record_id,
            values=dict(session.values),
            fields={
                name: FieldSelectionResponse(
                    target_type=selection.target_type.value if selection.target_type else None,
                    record_id=selection.record_id,
                    label=selection.label,
                    state=selection.state.value,
                )
                for name, selection in session.fields.items()
            },
            creations=[CreationContextResponse.from_context(c) for c in session.creations.values()],
            expires_at=session.expires_at,
        )


class CreationResultResponse(BaseModel):
    """Created record plus the parent form after the selection was applied."""

    record: CandidateResponse
    form: FormSessionResponse


class SubmittedRecordResponse(BaseModel):
    """Parent record persisted by a form submit."""

    id: str = Field(..., description="Record GUID")
    resource: str
    label: str
    created: bool = Field(..., description="True for a new record, False for an update")
