"""
Renders belongs-to fields into view models.

The renderer turns a relation descriptor, its current selection and (for
plain selects) a candidate set into a BelongsToFieldView. Options start
with the "Choose an option" placeholder; the sentinel is rendered disabled
so it can never be submitted.
"""

from typing import List, Optional

from panel.src.resources import RelationDescriptor
from panel.src.schemas.association import BelongsToFieldView, SelectOption
from panel.src.services.candidate_service import CandidateSet
from panel.src.services.field_policy import creation_label, is_searchable
from panel.src.services.form_state import FieldSelection


PLACEHOLDER_LABEL = "Choose an option"


def render_belongs_to(
    descriptor: RelationDescriptor,
    selection: FieldSelection,
    candidates: Optional[CandidateSet] = None,
) -> BelongsToFieldView:
    """
    Render a belongs-to field.

    Args:
        descriptor: Field definition
        selection: Current selection of the field
        candidates: Candidate set for plain selects; ignored for searchable
            fields and absent while a polymorphic field awaits its type

    Returns:
        BelongsToFieldView
    """
    target_type = selection.target_type
    if not descriptor.is_polymorphic:
        target_type = descriptor.allowed_target_types[0]

    type_options: List[SelectOption] = []
    if descriptor.is_polymorphic:
        type_options = [SelectOption(value="", label=PLACEHOLDER_LABEL, selected=target_type is None)]
        type_options += [
            SelectOption(
                value=allowed.value,
                label=allowed.display_name,
                selected=allowed == target_type,
            )
            for allowed in descriptor.allowed_target_types
        ]

    options = [SelectOption(value="", label=PLACEHOLDER_LABEL, selected=not selection.has_selection)]
    if candidates is not None and not is_searchable(descriptor):
        options += [
            SelectOption(
                value=candidate.id,
                label=candidate.label,
                disabled=not candidate.selectable,
                selected=candidate.id == selection.record_id,
            )
            for candidate in candidates.options
        ]

    # Keep the current selection visible when it fell outside the list
    if selection.has_selection and not any(o.value == selection.record_id for o in options):
        options.insert(1, SelectOption(
            value=selection.record_id,
            label=selection.label or selection.record_id,
            selected=True,
        ))

    return BelongsToFieldView(
        name=descriptor.relation_name,
        label=descriptor.display_label,
        kind=descriptor.kind.value,
        searchable=is_searchable(descriptor),
        target_type=target_type.value if target_type is not None else None,
        type_options=type_options,
        options=options,
        selected_id=selection.record_id,
        selected_label=selection.label,
        create_label=creation_label(descriptor, target_type),
        state=selection.state.value,
    )
