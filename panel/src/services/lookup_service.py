"""
Lookup service for belongs-to fields.

Renders a field's select (resolving its target type and listing bounded
candidates) and serves remote searches for searchable fields. The lookup
list limit comes from the settings handed to the service and is passed to
the candidate builder on every call.
"""

from typing import Optional, Union

from sqlalchemy.orm import Session

from panel.src.config.settings import AppSettings, get_settings
from panel.src.resources import RelationDescriptor, Resource, ResourceType
from panel.src.schemas.association import BelongsToFieldView
from panel.src.services.association_service import AssociationResolver
from panel.src.services.candidate_service import CandidateListBuilder, CandidateSet
from panel.src.services.data_store import SqlAlchemyDataStore
from panel.src.services.exceptions import ValidationError
from panel.src.services.field_policy import is_searchable
from panel.src.services.field_renderer import render_belongs_to
from panel.src.services.form_state import FieldSelection
from panel.src.services.selection_service import settled_state


class LookupService:
    """
    Renders and searches belongs-to fields.

    Usage:
        >>> service = LookupService(db_session)
        >>> view = service.render_field(course_links, "course")
        >>> [o.label for o in view.options]
        ['Choose an option', 'Algebra', 'There are more records available.']
    """

    def __init__(self, db: Session, settings: Optional[AppSettings] = None, data_store=None):
        """
        Initialize lookup service.

        Args:
            db: SQLAlchemy database session
            settings: Application settings (defaults to get_settings())
            data_store: Store override (defaults to SqlAlchemyDataStore(db))
        """
        self.db = db
        self.settings = settings or get_settings()
        self.data_store = data_store or SqlAlchemyDataStore(db)
        self.candidates = CandidateListBuilder(self.data_store)

    @property
    def lookup_list_limit(self) -> int:
        return self.settings.associations_lookup_list_limit

    def render_field(
        self,
        resource: Resource,
        relation_name: str,
        target_type: Optional[Union[ResourceType, str]] = None,
    ) -> BelongsToFieldView:
        """
        Render a field outside any form session (nothing selected).

        Raises:
            NotFoundError: If the field doesn't exist
            InvalidTargetTypeError: If the given type is not allowed
            DataSourceUnavailableError: If candidates cannot be listed
        """
        descriptor = resource.get_relation(relation_name)
        resolved = AssociationResolver.try_resolve(descriptor, target_type)

        selection = FieldSelection(
            relation_name=relation_name,
            target_type=resolved if descriptor.is_polymorphic else None,
        )
        selection.state = settled_state(selection, descriptor.is_polymorphic)
        return self.render_selection(descriptor, selection)

    def render_selection(self, descriptor: RelationDescriptor, selection: FieldSelection) -> BelongsToFieldView:
        """
        Render a field with a given selection.

        Plain selects of a resolved type get a candidate list; searchable
        fields and polymorphic fields awaiting a type don't.
        """
        resolved = AssociationResolver.try_resolve(descriptor, selection.target_type)

        candidates: Optional[CandidateSet] = None
        if resolved is not None and not is_searchable(descriptor):
            candidates = self.candidates.list_candidates(resolved, self.lookup_list_limit)

        return render_belongs_to(descriptor, selection, candidates)

    def search(
        self,
        resource: Resource,
        relation_name: str,
        term: str,
        target_type: Optional[Union[ResourceType, str]] = None,
    ) -> CandidateSet:
        """
        Search candidates for a searchable field.

        Raises:
            NotFoundError: If the field doesn't exist
            ValidationError: If the field is not searchable
            InvalidTargetTypeError: If the type can't be resolved
            DataSourceUnavailableError: If the store cannot be queried
        """
        descriptor = resource.get_relation(relation_name)
        if not is_searchable(descriptor):
            raise ValidationError(
                f"Field '{relation_name}' of {resource.route_name} is not searchable",
                field=relation_name,
            )

        resolved = AssociationResolver.resolve(descriptor, target_type)
        return self.candidates.search_candidates(resolved, term, self.lookup_list_limit)
