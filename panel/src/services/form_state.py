"""
In-memory state of panel form sessions.

A form session exists from the moment a new/edit form is opened until it is
submitted or discarded. It holds plain attribute values, the selection of
every belongs-to field and the nested creation contexts ("Create new ..."
dialogs) opened from it. Nothing here touches the database.

Field state machine:
    IDLE -> AWAITING_TARGET_TYPE (polymorphic only) -> LISTING_CANDIDATES
         -> CREATING_NEW -> (SELECTED | VALIDATION_FAILED -> CREATING_NEW)
         -> SELECTED
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from panel.src.resources import ResourceType
from panel.src.services.candidate_service import CandidateRecord


class FieldState(str, enum.Enum):
    """Interaction state of one belongs-to field."""
    IDLE = "idle"
    AWAITING_TARGET_TYPE = "awaiting_target_type"
    LISTING_CANDIDATES = "listing_candidates"
    CREATING_NEW = "creating_new"
    VALIDATION_FAILED = "validation_failed"
    SELECTED = "selected"


class CreationStatus(str, enum.Enum):
    """Lifecycle of a nested creation context."""
    OPEN = "open"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class FieldSelection:
    """
    Selection of one belongs-to field.

    For polymorphic fields the record id only means something together
    with target_type.
    """

    relation_name: str
    target_type: Optional[ResourceType] = None
    record_id: Optional[str] = None
    label: Optional[str] = None
    state: FieldState = FieldState.IDLE

    @property
    def has_selection(self) -> bool:
        return self.record_id is not None

    def clear(self) -> None:
        """Drop the selected record, keeping the target type."""
        self.record_id = None
        self.label = None


@dataclass
class CreationContext:
    """
    Nested creation form opened from a belongs-to field.

    Attributes:
        guid: Context identifier (ctx_xxx)
        relation_name: Field the new record is created for
        target_type: Resource type being created
        status: OPEN until a successful submit (COMMITTED) or cancel
        errors: Validation errors of the last failed submit
        record: Created record, once committed
    """

    guid: str
    relation_name: str
    target_type: ResourceType
    status: CreationStatus = CreationStatus.OPEN
    errors: Dict[str, List[str]] = field(default_factory=dict)
    record: Optional[CandidateRecord] = None


@dataclass
class FormSession:
    """
    State of one new/edit form.

    Attributes:
        guid: Session identifier (frm_xxx)
        resource_type: Resource the form edits
        record_id: GUID of the edited record, None for a new record
        values: Attribute values entered so far
        fields: Selection state per belongs-to field
        creations: Open or committed creation contexts by GUID
        expires_at: Expiry, pushed forward on every access
    """

    guid: str
    resource_type: ResourceType
    expires_at: datetime
    record_id: Optional[str] = None
    values: Dict[str, Any] = field(default_factory=dict)
    fields: Dict[str, FieldSelection] = field(default_factory=dict)
    creations: Dict[str, CreationContext] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        return self.record_id is None

    def field_selection(self, relation_name: str) -> FieldSelection:
        """Selection of a field, created on first access."""
        selection = self.fields.get(relation_name)
        if selection is None:
            selection = FieldSelection(relation_name=relation_name)
            self.fields[relation_name] = selection
        return selection
