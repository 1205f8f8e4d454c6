"""
Inline creation of related records.

Backs the "Create new <type>" dialog of belongs-to fields: a nested
creation context is opened for the field's target type, submitted until the
input validates, and yields exactly one new record that the caller splices
into the parent form.

Design:
- Validation runs against the target resource's pydantic schema; failures
  raise FormValidationError keyed by field and leave the context open
- A committed context returns its record on re-submit, never inserting twice
- Cancelling drops the context; a record that was already committed stays
- Fields that don't allow creation refuse every entry point with
  CreationDisabledError
"""

from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from panel.src.resources import RelationDescriptor, ResourceType, get_resource
from panel.src.services.association_service import AssociationResolver
from panel.src.services.candidate_service import CandidateRecord
from panel.src.services.exceptions import (
    ConflictError,
    CreationDisabledError,
    FormValidationError,
    NotFoundError,
)
from panel.src.services.field_policy import is_creation_offered
from panel.src.services.form_state import (
    CreationContext,
    CreationStatus,
    FieldState,
    FormSession,
)
from panel.src.services.guid import GuidService
from panel.src.services.selection_service import settled_state
from panel.src.utils.logging_config import get_logger


logger = get_logger("services")


def validate_fields(schema: Type[BaseModel], form_fields: Dict[str, Any]) -> BaseModel:
    """
    Validate form input against a schema.

    Returns:
        The validated schema instance

    Raises:
        FormValidationError: With messages keyed by input name
    """
    try:
        return schema.model_validate(form_fields or {})
    except PydanticValidationError as e:
        errors: Dict[str, list] = {}
        for error in e.errors():
            name = str(error["loc"][0]) if error["loc"] else "base"
            message = error["msg"]
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            errors.setdefault(name, []).append(message)
        raise FormValidationError(errors)


class InlineCreationService:
    """
    Coordinates nested creation contexts.

    Usage:
        >>> service = InlineCreationService(SqlAlchemyDataStore(db))
        >>> context = service.open(session, "commentable", ResourceType.POST)
        >>> post = service.submit(session, context.guid, {"name": "Test post"})
    """

    def __init__(self, data_store):
        """
        Initialize inline creation service.

        Args:
            data_store: Store providing insert()
        """
        self.data_store = data_store

    def open(
        self,
        session: FormSession,
        relation_name: str,
        target_type: Optional[Union[ResourceType, str]] = None,
    ) -> CreationContext:
        """
        Open a creation context for a field of the session's resource.

        Args:
            session: Parent form session
            relation_name: Belongs-to field to create a record for
            target_type: Type to create; defaults to the field's chosen type

        Raises:
            NotFoundError: If the field doesn't exist
            CreationDisabledError: If the field doesn't allow creation
            InvalidTargetTypeError: If the type can't be resolved
        """
        descriptor = get_resource(session.resource_type).get_relation(relation_name)
        self._ensure_creatable(descriptor)

        selection = session.field_selection(relation_name)
        resolved = AssociationResolver.resolve(
            descriptor,
            target_type if target_type is not None else selection.target_type,
        )

        context = CreationContext(
            guid=GuidService.generate_guid("ctx"),
            relation_name=relation_name,
            target_type=resolved,
        )
        session.creations[context.guid] = context
        selection.state = FieldState.CREATING_NEW

        logger.info(
            f"Opened creation of {resolved.value} for {session.resource_type.value}.{relation_name}",
            extra={"session_id": session.guid, "context_id": context.guid},
        )
        return context

    def submit(self, session: FormSession, context_id: str, form_fields: Dict[str, Any]) -> CandidateRecord:
        """
        Submit a creation context.

        Returns:
            The created record (the stored one when already committed)

        Raises:
            NotFoundError: If the context doesn't exist
            ConflictError: If the context was cancelled
            FormValidationError: If the input is invalid (context stays open)
            DataSourceUnavailableError: If the store cannot be written
        """
        context = self.get_context(session, context_id)

        if context.status == CreationStatus.COMMITTED:
            logger.info(
                f"Creation context {context_id} already committed, returning {context.record.id}",
                extra={"session_id": session.guid, "context_id": context_id},
            )
            return context.record
        if context.status == CreationStatus.CANCELLED:
            raise ConflictError(f"Creation context {context_id} was cancelled")

        selection = session.field_selection(context.relation_name)
        selection.state = FieldState.CREATING_NEW
        try:
            record = self.create_record(context.target_type, form_fields)
        except FormValidationError as e:
            context.errors = e.errors
            selection.state = FieldState.VALIDATION_FAILED
            raise

        context.status = CreationStatus.COMMITTED
        context.record = record
        context.errors = {}
        return record

    def cancel(self, session: FormSession, context_id: str) -> CreationContext:
        """
        Drop a creation context.

        Uncommitted input is discarded. A record committed before the
        cancel stays in the store, and a selection already made with it
        is kept.

        Raises:
            NotFoundError: If the context doesn't exist
        """
        context = self.get_context(session, context_id)
        del session.creations[context_id]

        if context.status == CreationStatus.OPEN:
            descriptor = get_resource(session.resource_type).get_relation(context.relation_name)
            selection = session.field_selection(context.relation_name)
            selection.state = settled_state(selection, descriptor.is_polymorphic)

        context.status = CreationStatus.CANCELLED
        logger.info(
            f"Cancelled creation context {context_id}",
            extra={"session_id": session.guid, "context_id": context_id},
        )
        return context

    def create_related(
        self,
        descriptor: RelationDescriptor,
        target_type: Optional[Union[ResourceType, str]],
        form_fields: Dict[str, Any],
    ) -> CandidateRecord:
        """
        Create a related record for a field without a form session.

        Raises:
            CreationDisabledError: If the field doesn't allow creation
            InvalidTargetTypeError: If the type can't be resolved
            FormValidationError: If the input is invalid
        """
        self._ensure_creatable(descriptor)
        resolved = AssociationResolver.resolve(descriptor, target_type)
        return self.create_record(resolved, form_fields)

    def create_record(self, target_type: Union[ResourceType, str], form_fields: Dict[str, Any]) -> CandidateRecord:
        """
        Validate and insert one record of a type.

        Raises:
            FormValidationError: If the input is invalid or violates a unique constraint
            DataSourceUnavailableError: If the store cannot be written
        """
        resource = get_resource(target_type)
        validated = validate_fields(resource.create_schema, form_fields)
        record = self.data_store.insert(resource.resource_type, validated.model_dump(exclude_none=True))

        logger.info(
            f"Created {resource.resource_type.value}: {resource.label_for(record)} ({record.guid})",
            extra={"target_type": resource.resource_type.value, "guid": record.guid},
        )
        return CandidateRecord.from_record(resource, record)

    @staticmethod
    def get_context(session: FormSession, context_id: str) -> CreationContext:
        """
        Raises:
            NotFoundError: If the session has no such context
        """
        context = session.creations.get(context_id)
        if context is None:
            raise NotFoundError("Creation context", context_id)
        return context

    @staticmethod
    def _ensure_creatable(descriptor: RelationDescriptor) -> None:
        if not is_creation_offered(descriptor):
            logger.warning(
                f"Refused inline creation for non-creatable field '{descriptor.relation_name}'",
                extra={"relation_name": descriptor.relation_name},
            )
            raise CreationDisabledError(descriptor.relation_name)
