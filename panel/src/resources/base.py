"""
Resource base class.

A resource ties a model to its form fields, the attribute used as display
label, the columns searched by remote lookups and the pydantic schema that
validates new records.

Fields can be swapped out temporarily (and restored from a backup), which
is how a single field's options are changed for one scenario without
redefining the resource.
"""

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple, Type

from pydantic import BaseModel

from panel.src.resources.fields import AttributeField, Field, RelationDescriptor
from panel.src.resources.types import ResourceType
from panel.src.services.exceptions import NotFoundError


class Resource:
    """
    Base class for panel resources.

    Subclasses set:
        resource_type: ResourceType of the model
        model: SQLAlchemy model class
        route_name: Plural name used in URLs ("course_links")
        title_attribute: Attribute rendered as the record's label
        search_columns: Column names matched by remote search
        create_schema: Pydantic model validating new records
        fields: Tuple of AttributeField / RelationDescriptor
    """

    resource_type: ResourceType
    model: type
    route_name: str
    title_attribute: str = "name"
    search_columns: Tuple[str, ...] = ("name",)
    create_schema: Type[BaseModel]
    fields: Tuple[Field, ...] = ()

    def __init__(self):
        self._items: Tuple[Field, ...] = tuple(self.fields)
        self._backup: Optional[Tuple[Field, ...]] = None

    @property
    def items(self) -> Tuple[Field, ...]:
        """Fields currently in effect."""
        return self._items

    @property
    def attributes(self) -> List[AttributeField]:
        return [f for f in self._items if isinstance(f, AttributeField)]

    @property
    def relations(self) -> List[RelationDescriptor]:
        return [f for f in self._items if isinstance(f, RelationDescriptor)]

    @property
    def attribute_names(self) -> List[str]:
        return [f.name for f in self.attributes]

    def get_relation(self, relation_name: str) -> RelationDescriptor:
        """
        Look up a belongs-to field by name.

        Raises:
            NotFoundError: If the resource has no such relation
        """
        for relation in self.relations:
            if relation.relation_name == relation_name:
                return relation
        raise NotFoundError("Field", f"{self.route_name}.{relation_name}")

    def label_for(self, record: Any) -> str:
        """Display label of a record of this resource."""
        value = getattr(record, self.title_attribute, None)
        return str(value) if value is not None else record.guid

    # ------------------------------------------------------------------
    # Temporary field overrides
    # ------------------------------------------------------------------

    def with_temporary_fields(self, *fields: Field) -> None:
        """
        Replace the resource's fields until restore_fields_from_backup().

        Nested overrides keep the original definition as the backup.
        """
        if self._backup is None:
            self._backup = self._items
        self._items = tuple(fields)

    def restore_fields_from_backup(self) -> None:
        """Restore the fields saved by with_temporary_fields()."""
        if self._backup is not None:
            self._items = self._backup
            self._backup = None

    @contextmanager
    def temporary_fields(self, *fields: Field) -> Iterator["Resource"]:
        """
        Context manager form of with_temporary_fields().

        Example:
            >>> with course_links.temporary_fields(
            ...     belongs_to("course", ResourceType.COURSE, searchable=True, can_create=False)
            ... ):
            ...     ...
        """
        self.with_temporary_fields(*fields)
        try:
            yield self
        finally:
            self.restore_fields_from_backup()

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(type={self.resource_type.value})>"
