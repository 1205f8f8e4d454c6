"""
Panel resources: models, their form fields and association definitions.
"""

from panel.src.resources.types import ResourceType
from panel.src.resources.fields import (
    AttributeField,
    RelationDescriptor,
    RelationKind,
    attribute,
    belongs_to,
)
from panel.src.resources.base import Resource
from panel.src.resources.registry import RESOURCES, get_resource, get_resource_by_route

__all__ = [
    "ResourceType",
    "AttributeField",
    "RelationDescriptor",
    "RelationKind",
    "attribute",
    "belongs_to",
    "Resource",
    "RESOURCES",
    "get_resource",
    "get_resource_by_route",
]
