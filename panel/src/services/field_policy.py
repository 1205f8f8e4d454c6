"""
Per-field policy for belongs-to fields.

Pure lookups on the relation descriptor.
"""

from typing import Optional

from panel.src.resources import RelationDescriptor, ResourceType


def is_creation_offered(descriptor: RelationDescriptor) -> bool:
    """Whether the field offers "Create new <type>"."""
    return descriptor.creatable


def is_searchable(descriptor: RelationDescriptor) -> bool:
    """Whether the field uses a remote search input instead of a plain select."""
    return descriptor.searchable


def creation_label(descriptor: RelationDescriptor, target_type: Optional[ResourceType]) -> Optional[str]:
    """
    Label of the inline creation affordance.

    Returns None when creation is disabled or the target type is still
    unknown (polymorphic field without a chosen type).
    """
    if not is_creation_offered(descriptor) or target_type is None:
        return None
    return f"Create new {ResourceType(target_type).human_name}"
