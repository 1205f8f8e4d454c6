"""
Selection splicing for form sessions.

Writes chosen or newly created records into a form session's belongs-to
fields. Only the named field is touched; every other value entered in the
form survives.
"""

from typing import Union

from panel.src.resources import ResourceType
from panel.src.services.candidate_service import CandidateRecord
from panel.src.services.exceptions import ValidationError
from panel.src.services.form_state import CreationStatus, FieldSelection, FieldState, FormSession


def apply_selection(session: FormSession, relation_name: str, record: CandidateRecord) -> FieldSelection:
    """
    Select a record in a belongs-to field.

    Sets the field's record id and label (and its target type, when the
    record carries one) and marks the field SELECTED. Idempotent.

    Raises:
        ValidationError: If the record is not selectable (the sentinel)
    """
    if not record.selectable:
        raise ValidationError(f"'{record.label}' cannot be selected", field=relation_name)

    selection = session.field_selection(relation_name)
    if record.target_type is not None:
        selection.target_type = record.target_type
    selection.record_id = record.id
    selection.label = record.label
    selection.state = FieldState.SELECTED
    return selection


def choose_target_type(
    session: FormSession,
    relation_name: str,
    target_type: Union[ResourceType, str],
) -> FieldSelection:
    """
    Set the target type of a polymorphic field.

    Switching to a different type clears the previous selection and drops
    the field's creation contexts for other types, so their records can no
    longer be spliced in. Choosing the current type again keeps both.
    """
    target_type = ResourceType(target_type)
    selection = session.field_selection(relation_name)

    if selection.target_type != target_type:
        selection.clear()
        selection.target_type = target_type
        stale = [
            context
            for context in session.creations.values()
            if context.relation_name == relation_name and context.target_type != target_type
        ]
        for context in stale:
            context.status = CreationStatus.CANCELLED
            del session.creations[context.guid]

    if any(
        context.relation_name == relation_name and context.status == CreationStatus.OPEN
        for context in session.creations.values()
    ):
        selection.state = FieldState.CREATING_NEW
    else:
        selection.state = FieldState.SELECTED if selection.has_selection else FieldState.LISTING_CANDIDATES
    return selection


def clear_selection(session: FormSession, relation_name: str, polymorphic: bool = False) -> FieldSelection:
    """Remove the selected record from a field."""
    selection = session.field_selection(relation_name)
    selection.clear()
    selection.state = settled_state(selection, polymorphic=polymorphic)
    return selection


def settled_state(selection: FieldSelection, polymorphic: bool) -> FieldState:
    """State a field returns to when no creation is in progress."""
    if selection.has_selection:
        return FieldState.SELECTED
    if polymorphic and selection.target_type is None:
        return FieldState.AWAITING_TARGET_TYPE
    return FieldState.LISTING_CANDIDATES
