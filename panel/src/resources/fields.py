"""
Field definitions for panel resources.

Two kinds of fields exist:
- AttributeField: a plain value column edited through a form input
- RelationDescriptor: a belongs-to association, either direct (one target
  type) or polymorphic (the target type is chosen per record)

Descriptors are immutable once the resource is defined.
"""

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from panel.src.resources.types import ResourceType


class RelationKind(str, enum.Enum):
    """Belongs-to relation kinds."""
    DIRECT = "direct"
    POLYMORPHIC = "polymorphic"


@dataclass(frozen=True)
class AttributeField:
    """
    Plain attribute field.

    Attributes:
        name: Model attribute / form input name
        required: Whether the form must provide a value
    """

    name: str
    required: bool = False


@dataclass(frozen=True)
class RelationDescriptor:
    """
    Belongs-to association field.

    Attributes:
        relation_name: Association name on the parent (e.g. "user", "commentable")
        kind: DIRECT or POLYMORPHIC
        allowed_target_types: Target types, exactly one for DIRECT relations
        searchable: Render a remote search input instead of a plain select
        creatable: Offer "Create new <type>" for inline creation
        required: Parent form cannot be submitted without a selection
        label: Optional display label (defaults to the humanized name)

    Raises:
        ValueError: If the target types don't fit the relation kind
    """

    relation_name: str
    kind: RelationKind
    allowed_target_types: Tuple[ResourceType, ...]
    searchable: bool = False
    creatable: bool = True
    required: bool = False
    label: Optional[str] = None

    def __post_init__(self):
        allowed = tuple(ResourceType(t) for t in self.allowed_target_types)
        object.__setattr__(self, "allowed_target_types", allowed)
        object.__setattr__(self, "kind", RelationKind(self.kind))

        if not allowed:
            raise ValueError(f"Relation '{self.relation_name}' needs at least one target type")
        if len(set(allowed)) != len(allowed):
            raise ValueError(f"Relation '{self.relation_name}' lists a target type twice")
        if self.kind == RelationKind.DIRECT and len(allowed) != 1:
            raise ValueError(
                f"Direct relation '{self.relation_name}' must have exactly one target type"
            )

    @property
    def is_polymorphic(self) -> bool:
        return self.kind == RelationKind.POLYMORPHIC

    @property
    def id_column(self) -> str:
        """Column holding the target's primary key ("user_id", "commentable_id")."""
        return f"{self.relation_name}_id"

    @property
    def type_column(self) -> Optional[str]:
        """Column holding the target type, polymorphic relations only."""
        return f"{self.relation_name}_type" if self.is_polymorphic else None

    @property
    def display_label(self) -> str:
        return self.label or self.relation_name.replace("_", " ").capitalize()


Field = Union[AttributeField, RelationDescriptor]


def attribute(name: str, required: bool = False) -> AttributeField:
    """Declare a plain attribute field."""
    return AttributeField(name=name, required=required)


def belongs_to(
    name: str,
    target: Optional[Union[ResourceType, str]] = None,
    *,
    types: Optional[Iterable[Union[ResourceType, str]]] = None,
    searchable: bool = False,
    can_create: bool = True,
    required: bool = False,
    label: Optional[str] = None,
) -> RelationDescriptor:
    """
    Declare a belongs-to field.

    Pass ``target`` for a direct relation or ``types`` for a polymorphic one.

    Examples:
        >>> belongs_to("course", ResourceType.COURSE, searchable=True, can_create=False)
        >>> belongs_to("commentable", types=[ResourceType.POST, ResourceType.PROJECT])
    """
    if (target is None) == (types is None):
        raise ValueError("belongs_to needs either a target or a list of types")

    if types is not None:
        kind = RelationKind.POLYMORPHIC
        allowed = tuple(types)
    else:
        kind = RelationKind.DIRECT
        allowed = (target,)

    return RelationDescriptor(
        relation_name=name,
        kind=kind,
        allowed_target_types=allowed,
        searchable=searchable,
        creatable=can_create,
        required=required,
        label=label,
    )
