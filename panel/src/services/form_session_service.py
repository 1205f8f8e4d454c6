"""
Form session service.

Drives the new/edit forms of panel resources: opening a session (loading
the edited record's values and associations), entering values, choosing
polymorphic types, selecting records, creating related records inline and
finally submitting the parent record.

Design:
- Sessions live in process memory, keyed by GUID (frm_xxx), and expire
  after the configured TTL of inactivity
- One session per form; sessions are never shared
- Submitting persists exactly one parent record and discards the session
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from sqlalchemy.orm import Session

from panel.src.config.settings import AppSettings, get_settings
from panel.src.resources import RelationDescriptor, ResourceType, get_resource
from panel.src.schemas.association import BelongsToFieldView
from panel.src.services.association_service import AssociationResolver
from panel.src.services.candidate_service import CandidateRecord, is_sentinel
from panel.src.services.data_store import SqlAlchemyDataStore
from panel.src.services.exceptions import (
    FormValidationError,
    NotFoundError,
    ValidationError,
)
from panel.src.services.form_state import CreationContext, FieldSelection, FieldState, FormSession
from panel.src.services.guid import GuidService
from panel.src.services.inline_creation_service import InlineCreationService, validate_fields
from panel.src.services.lookup_service import LookupService
from panel.src.services.selection_service import (
    apply_selection,
    choose_target_type,
    clear_selection,
    settled_state,
)
from panel.src.utils.logging_config import get_logger


logger = get_logger("services")


class FormSessionService:
    """
    Service for panel form sessions.

    Usage:
        >>> service = FormSessionService(db_session)
        >>> session = service.start(ResourceType.COMMENT)
        >>> service.set_values(session.guid, {"body": "Test comment"})
        >>> service.choose_target_type(session.guid, "commentable", "post")
        >>> context = service.open_creation(session.guid, "commentable")
        >>> service.submit_creation(session.guid, context.guid, {"name": "Test post"})
        >>> comment, created = service.submit(session.guid)
    """

    # In-memory storage for form sessions (keyed by frm_ GUID)
    _sessions: Dict[str, FormSession] = {}

    def __init__(self, db: Session, settings: Optional[AppSettings] = None):
        """
        Initialize form session service.

        Args:
            db: SQLAlchemy database session
            settings: Application settings (defaults to get_settings())
        """
        self.db = db
        self.settings = settings or get_settings()
        self.data_store = SqlAlchemyDataStore(db)
        self.lookups = LookupService(db, settings=self.settings, data_store=self.data_store)
        self.creations = InlineCreationService(self.data_store)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start(self, resource_type: Union[ResourceType, str], record_id: Optional[str] = None) -> FormSession:
        """
        Open a form session for a new record, or for editing one.

        Args:
            resource_type: Resource the form edits
            record_id: GUID of the record to edit (None for a new record)

        Raises:
            NotFoundError: If the resource or the edited record doesn't exist
            DataSourceUnavailableError: If the record cannot be loaded
        """
        self._purge_expired()
        resource = get_resource(resource_type)

        session = FormSession(
            guid=GuidService.generate_guid("frm"),
            resource_type=resource.resource_type,
            expires_at=datetime.utcnow() + self.settings.form_session_ttl,
        )

        record = None
        if record_id is not None:
            record = self.data_store.find_by_id(resource.resource_type, record_id)
            if record is None:
                raise NotFoundError(resource.resource_type.display_name, record_id)
            session.record_id = record.guid
            session.values = {name: getattr(record, name, None) for name in resource.attribute_names}

        for descriptor in resource.relations:
            selection = session.field_selection(descriptor.relation_name)
            if record is not None:
                self._load_selection(session, descriptor, record)
            selection.state = settled_state(selection, descriptor.is_polymorphic)

        self._sessions[session.guid] = session

        logger.info(
            f"Started {'new' if session.is_new else 'edit'} form for {resource.route_name}",
            extra={"session_id": session.guid, "record_id": session.record_id},
        )
        return session

    def get(self, session_id: str) -> FormSession:
        """
        Get a live session and extend its expiry.

        Raises:
            NotFoundError: If the session doesn't exist or expired
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("Form session", session_id)

        now = datetime.utcnow()
        if now > session.expires_at:
            del self._sessions[session_id]
            raise NotFoundError("Form session", session_id)

        session.expires_at = now + self.settings.form_session_ttl
        return session

    def discard(self, session_id: str) -> None:
        """
        Drop a session and everything entered in it.

        Raises:
            NotFoundError: If the session doesn't exist
        """
        if self._sessions.pop(session_id, None) is None:
            raise NotFoundError("Form session", session_id)
        logger.info(f"Discarded form session {session_id}", extra={"session_id": session_id})

    @classmethod
    def clear_sessions(cls) -> None:
        """Drop every session (used on shutdown and in tests)."""
        cls._sessions.clear()

    # ------------------------------------------------------------------
    # Field interaction
    # ------------------------------------------------------------------

    def set_values(self, session_id: str, values: Dict[str, Any]) -> FormSession:
        """
        Merge attribute values into the form.

        Raises:
            NotFoundError: If the session doesn't exist
            ValidationError: If a name is not an attribute field of the resource
        """
        session = self.get(session_id)
        resource = get_resource(session.resource_type)

        allowed = set(resource.attribute_names)
        for name in values:
            if name not in allowed:
                raise ValidationError(f"'{name}' is not a field of {resource.route_name}", field=name)

        session.values.update(values)
        return session

    def choose_target_type(
        self,
        session_id: str,
        relation_name: str,
        target_type: Union[ResourceType, str],
    ) -> FieldSelection:
        """
        Choose the target type of a polymorphic field.

        A different type than before clears the field's selection and drops
        its creation contexts for other types.

        Raises:
            NotFoundError: If the session or field doesn't exist
            InvalidTargetTypeError: If the type is not allowed for the field
        """
        session = self.get(session_id)
        descriptor = self._relation(session, relation_name)
        resolved = AssociationResolver.resolve(descriptor, target_type)
        return choose_target_type(session, relation_name, resolved)

    def select(self, session_id: str, relation_name: str, record_id: Optional[str]) -> FieldSelection:
        """
        Select an existing record in a field (None clears the field).

        Raises:
            NotFoundError: If the session, field or record doesn't exist
            ValidationError: If the sentinel is submitted as a record
            InvalidTargetTypeError: If a polymorphic field has no type chosen
        """
        session = self.get(session_id)
        descriptor = self._relation(session, relation_name)

        if record_id is None or record_id == "":
            return clear_selection(session, relation_name, descriptor.is_polymorphic)
        if is_sentinel(record_id):
            raise ValidationError(f"'{record_id}' cannot be selected", field=relation_name)

        selection = session.field_selection(relation_name)
        target_type = AssociationResolver.resolve(descriptor, selection.target_type)
        target_resource = get_resource(target_type)

        record = self.data_store.find_by_id(target_type, record_id)
        if record is None:
            raise NotFoundError(target_type.display_name, record_id)

        return apply_selection(session, relation_name, CandidateRecord.from_record(target_resource, record))

    def render_field(self, session_id: str, relation_name: str) -> BelongsToFieldView:
        """
        Render a field of the form with its current selection.

        Raises:
            NotFoundError: If the session or field doesn't exist
            DataSourceUnavailableError: If candidates cannot be listed
        """
        session = self.get(session_id)
        descriptor = self._relation(session, relation_name)
        return self.lookups.render_selection(descriptor, session.field_selection(relation_name))

    # ------------------------------------------------------------------
    # Inline creation
    # ------------------------------------------------------------------

    def open_creation(
        self,
        session_id: str,
        relation_name: str,
        target_type: Optional[Union[ResourceType, str]] = None,
    ) -> CreationContext:
        """
        Open a nested creation form for a field.

        Raises:
            NotFoundError: If the session or field doesn't exist
            CreationDisabledError: If the field doesn't allow creation
            InvalidTargetTypeError: If the type can't be resolved
        """
        session = self.get(session_id)
        return self.creations.open(session, relation_name, target_type)

    def submit_creation(self, session_id: str, context_id: str, form_fields: Dict[str, Any]) -> CandidateRecord:
        """
        Submit a nested creation form and select the new record.

        Raises:
            NotFoundError: If the session or context doesn't exist
            ConflictError: If the context was cancelled
            FormValidationError: If the input is invalid (context stays open)
        """
        session = self.get(session_id)
        record = self.creations.submit(session, context_id, form_fields)
        context = session.creations[context_id]
        apply_selection(session, context.relation_name, record)
        return record

    def cancel_creation(self, session_id: str, context_id: str) -> CreationContext:
        """
        Close a nested creation form.

        Nothing is selected for an open context; a selection already made
        by a committed one is kept.

        Raises:
            NotFoundError: If the session or context doesn't exist
        """
        session = self.get(session_id)
        return self.creations.cancel(session, context_id)

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit(self, session_id: str) -> Tuple[Any, bool]:
        """
        Persist the parent record and close the session.

        Returns:
            Tuple of (record, created) where created is False for an edit

        Raises:
            NotFoundError: If the session or edited record doesn't exist
            FormValidationError: If values or selections are invalid
            InvalidTargetTypeError: If a polymorphic selection has a bad type
            DataSourceUnavailableError: If the store cannot be written
        """
        session = self.get(session_id)
        resource = get_resource(session.resource_type)

        errors: Dict[str, list] = {}
        columns: Dict[str, Any] = {}

        try:
            validated = validate_fields(resource.create_schema, session.values)
            if session.is_new:
                columns.update(validated.model_dump(exclude_none=True))
            else:
                columns.update(validated.model_dump(exclude_unset=True))
        except FormValidationError as e:
            errors.update(e.errors)

        for descriptor in resource.relations:
            relation_columns, relation_error = self._relation_columns(session, descriptor)
            if relation_error:
                errors[descriptor.relation_name] = [relation_error]
            columns.update(relation_columns)

        if errors:
            raise FormValidationError(errors)

        if session.is_new:
            record = self.data_store.insert(resource.resource_type, columns)
            created = True
        else:
            record = self.data_store.update(resource.resource_type, session.record_id, columns)
            created = False

        for selection in session.fields.values():
            selection.state = FieldState.IDLE
        self._sessions.pop(session.guid, None)

        logger.info(
            f"Submitted {resource.route_name} form: {'created' if created else 'updated'} {record.guid}",
            extra={"session_id": session.guid, "guid": record.guid, "created": created},
        )
        return record, created

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _relation(session: FormSession, relation_name: str) -> RelationDescriptor:
        return get_resource(session.resource_type).get_relation(relation_name)

    def _relation_columns(
        self,
        session: FormSession,
        descriptor: RelationDescriptor,
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """Foreign key columns of one relation, plus an error message if invalid."""
        columns: Dict[str, Any] = {descriptor.id_column: None}
        if descriptor.is_polymorphic:
            columns[descriptor.type_column] = None

        selection = session.fields.get(descriptor.relation_name)
        if selection is None or not selection.has_selection:
            return columns, "must exist" if descriptor.required else None

        if is_sentinel(selection.record_id):
            return columns, "is not a valid selection"

        target_type = AssociationResolver.resolve(descriptor, selection.target_type)
        related = self.data_store.find_by_id(target_type, selection.record_id)
        if related is None:
            return columns, "is no longer available"

        columns[descriptor.id_column] = related.id
        if descriptor.is_polymorphic:
            columns[descriptor.type_column] = target_type.value
        return columns, None

    def _load_selection(self, session: FormSession, descriptor: RelationDescriptor, record: Any) -> None:
        """Fill a field's selection from the edited record's stored association."""
        if descriptor.is_polymorphic:
            type_value = getattr(record, descriptor.type_column, None)
            if type_value not in {t.value for t in descriptor.allowed_target_types}:
                return
            target_resource = get_resource(type_value)
            session.field_selection(descriptor.relation_name).target_type = target_resource.resource_type
        else:
            target_resource = get_resource(descriptor.allowed_target_types[0])

        related = self.data_store.find_by_pk(
            target_resource.resource_type,
            getattr(record, descriptor.id_column, None),
        )
        if related is not None:
            apply_selection(
                session,
                descriptor.relation_name,
                CandidateRecord.from_record(target_resource, related),
            )

    def _purge_expired(self) -> None:
        now = datetime.utcnow()
        expired = [guid for guid, s in self._sessions.items() if now > s.expires_at]
        for guid in expired:
            del self._sessions[guid]
        if expired:
            logger.debug(f"Purged {len(expired)} expired form sessions")
