"""
Pydantic schemas for belongs-to field rendering and candidate lookups.

Provides serialization for:
- Select options (including the disabled "more records" sentinel)
- Rendered belongs-to fields
- Candidate lists returned by remote search

Design:
- Option values are record GUIDs, never internal IDs
- The sentinel option carries its label as value and is always disabled
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SelectOption(BaseModel):
    """
    One option of a select input.

    Example:
        >>> SelectOption(value="crs_01hgw2bbg...", label="Algebra", selected=True)
    """

    value: str = Field(..., description="Submitted value (GUID, type name, or empty)")
    label: str = Field(..., description="Displayed text")
    disabled: bool = Field(default=False, description="Option cannot be chosen")
    selected: bool = Field(default=False, description="Option is currently selected")


class CandidateResponse(BaseModel):
    """A candidate record returned by lookups."""

    id: str = Field(..., description="Record GUID")
    label: str
    target_type: Optional[str] = None
    selectable: bool = True

    @classmethod
    def from_candidate(cls, candidate) -> "CandidateResponse":
        return cls(
            id=candidate.id,
            label=candidate.label,
            target_type=candidate.target_type.value if candidate.target_type else None,
            selectable=candidate.selectable,
        )


class CandidateListResponse(BaseModel):
    """
    Bounded list of candidates.

    Example:
        {
          "target_type": "course",
          "candidates": [{"id": "crs_...", "label": "Algebra", ...}],
          "has_more": true
        }
    """

    target_type: str
    candidates: List[CandidateResponse]
    has_more: bool


class BelongsToFieldView(BaseModel):
    """
    Everything needed to render one belongs-to field.

    Fields:
        name: Relation name
        label: Field label
        kind: "direct" or "polymorphic"
        searchable: Render a remote search input; ``options`` then only holds
            the placeholder and the current selection
        target_type: Resolved target type (None while awaiting a type choice)
        type_options: Type select for polymorphic fields (empty otherwise)
        options: Record select, starting with the placeholder
        selected_id / selected_label: Current selection
        create_label: "Create new <type>" when inline creation is offered
        state: Field interaction state
    """

    name: str
    label: str
    kind: str
    searchable: bool
    target_type: Optional[str] = None
    type_options: List[SelectOption] = Field(default_factory=list)
    options: List[SelectOption] = Field(default_factory=list)
    selected_id: Optional[str] = None
    selected_label: Optional[str] = None
    create_label: Optional[str] = None
    state: str
