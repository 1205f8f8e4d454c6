"""
Unit tests for InlineCreationService.

Tests the nested creation context lifecycle: open, validation failures that
keep the context open, exactly-once commits, cancellation and fields that
don't allow creation.
"""

from datetime import datetime, timedelta

import pytest

from panel.src.models import Post, User
from panel.src.resources import ResourceType, belongs_to, get_resource
from panel.src.services.data_store import SqlAlchemyDataStore
from panel.src.services.exceptions import (
    ConflictError,
    CreationDisabledError,
    FormValidationError,
    InvalidTargetTypeError,
    NotFoundError,
)
from panel.src.services.form_state import CreationStatus, FieldState, FormSession
from panel.src.services.inline_creation_service import InlineCreationService, validate_fields
from panel.src.schemas.records import UserCreate


VALID_USER = {
    "email": "jane@example.com",
    "first_name": "Jane",
    "last_name": "Doe",
    "password": "password",
    "password_confirmation": "password",
}


@pytest.fixture
def creation_service(test_db_session):
    """Create an InlineCreationService over the test database."""
    return InlineCreationService(SqlAlchemyDataStore(test_db_session))


@pytest.fixture
def make_session():
    """Factory for bare form sessions."""
    def _create(resource_type):
        return FormSession(
            guid="frm_test",
            resource_type=resource_type,
            expires_at=datetime.utcnow() + timedelta(hours=1),
        )
    return _create


class TestValidateFields:
    """Tests for validate_fields()."""

    def test_errors_keyed_by_field(self):
        with pytest.raises(FormValidationError) as exc_info:
            validate_fields(UserCreate, {"email": "not-an-email", "first_name": "Jane"})

        errors = exc_info.value.errors
        assert errors["email"] == ["Email is not a valid address"]
        assert "last_name" in errors
        assert "password" in errors
        assert "first_name" not in errors

    def test_password_confirmation_mismatch(self):
        with pytest.raises(FormValidationError) as exc_info:
            validate_fields(UserCreate, {**VALID_USER, "password_confirmation": "different"})

        assert exc_info.value.errors == {
            "password_confirmation": ["Password confirmation doesn't match password"]
        }


class TestOpen:
    """Tests for opening creation contexts."""

    def test_open_direct(self, creation_service, make_session):
        session = make_session(ResourceType.FISH)

        context = creation_service.open(session, "user")

        assert context.guid.startswith("ctx_")
        assert context.target_type == ResourceType.USER
        assert context.status == CreationStatus.OPEN
        assert session.creations[context.guid] is context
        assert session.fields["user"].state == FieldState.CREATING_NEW

    def test_open_polymorphic_uses_given_type(self, creation_service, make_session):
        context = creation_service.open(make_session(ResourceType.COMMENT), "commentable", "post")
        assert context.target_type == ResourceType.POST

    def test_open_polymorphic_uses_chosen_type(self, creation_service, make_session):
        session = make_session(ResourceType.COMMENT)
        session.field_selection("commentable").target_type = ResourceType.PROJECT

        context = creation_service.open(session, "commentable")

        assert context.target_type == ResourceType.PROJECT

    def test_open_polymorphic_without_type(self, creation_service, make_session):
        with pytest.raises(InvalidTargetTypeError):
            creation_service.open(make_session(ResourceType.COMMENT), "commentable")

    def test_open_unknown_field(self, creation_service, make_session):
        with pytest.raises(NotFoundError):
            creation_service.open(make_session(ResourceType.FISH), "owner")

    def test_open_disabled(self, creation_service, make_session):
        """Test fields without can_create refuse to open a context."""
        fish = get_resource(ResourceType.FISH)
        session = make_session(ResourceType.FISH)

        with fish.temporary_fields(belongs_to("user", ResourceType.USER, can_create=False)):
            with pytest.raises(CreationDisabledError):
                creation_service.open(session, "user")

        assert session.creations == {}


class TestSubmit:
    """Tests for submitting creation contexts."""

    def test_submit_creates_one_record(self, creation_service, make_session, test_db_session):
        session = make_session(ResourceType.FISH)
        context = creation_service.open(session, "user")

        record = creation_service.submit(session, context.guid, VALID_USER)

        assert record.id.startswith("usr_")
        assert record.label == "Jane Doe"
        assert record.target_type == ResourceType.USER
        assert context.status == CreationStatus.COMMITTED
        assert context.record == record
        assert test_db_session.query(User).count() == 1
        user = test_db_session.query(User).first()
        assert user.check_password("password")
        assert user.password_digest != "password"

    def test_validation_failure_keeps_context_open(self, creation_service, make_session, test_db_session):
        session = make_session(ResourceType.COMMENT)
        context = creation_service.open(session, "commentable", "post")

        with pytest.raises(FormValidationError) as exc_info:
            creation_service.submit(session, context.guid, {"name": "   "})

        assert "name" in exc_info.value.errors
        assert context.status == CreationStatus.OPEN
        assert context.errors == exc_info.value.errors
        assert session.fields["commentable"].state == FieldState.VALIDATION_FAILED
        assert test_db_session.query(Post).count() == 0

        # Corrected input succeeds in the same context
        record = creation_service.submit(session, context.guid, {"name": "Test post"})
        assert record.label == "Test post"
        assert context.errors == {}
        assert session.fields["commentable"].state == FieldState.CREATING_NEW
        assert test_db_session.query(Post).count() == 1

    def test_retry_reenters_creating_new(self, creation_service, make_session, mocker):
        """Test a retry after a failed validation runs in CREATING_NEW."""
        session = make_session(ResourceType.COMMENT)
        context = creation_service.open(session, "commentable", "post")
        with pytest.raises(FormValidationError):
            creation_service.submit(session, context.guid, {"name": "   "})

        states = []
        create_record = creation_service.create_record

        def _record_state(*args, **kwargs):
            states.append(session.fields["commentable"].state)
            return create_record(*args, **kwargs)

        mocker.patch.object(creation_service, "create_record", side_effect=_record_state)

        with pytest.raises(FormValidationError):
            creation_service.submit(session, context.guid, {"name": ""})

        assert states == [FieldState.CREATING_NEW]
        assert session.fields["commentable"].state == FieldState.VALIDATION_FAILED

    def test_resubmit_returns_same_record(self, creation_service, make_session, test_db_session):
        """Test a committed context never inserts a second record."""
        session = make_session(ResourceType.COMMENT)
        context = creation_service.open(session, "commentable", "post")

        first = creation_service.submit(session, context.guid, {"name": "Test post"})
        second = creation_service.submit(session, context.guid, {"name": "Another post"})

        assert first == second
        assert test_db_session.query(Post).count() == 1

    def test_duplicate_email_is_validation_error(self, creation_service, make_session, sample_user):
        sample_user(email="jane@example.com")
        session = make_session(ResourceType.FISH)
        context = creation_service.open(session, "user")

        with pytest.raises(FormValidationError) as exc_info:
            creation_service.submit(session, context.guid, VALID_USER)

        assert exc_info.value.errors == {"email": ["has already been taken"]}
        assert context.status == CreationStatus.OPEN

    def test_submit_unknown_context(self, creation_service, make_session):
        with pytest.raises(NotFoundError):
            creation_service.submit(make_session(ResourceType.FISH), "ctx_missing", VALID_USER)

    def test_submit_does_not_touch_parent_values(self, creation_service, make_session):
        session = make_session(ResourceType.FISH)
        session.values = {"name": "Nemo"}
        context = creation_service.open(session, "user")

        creation_service.submit(session, context.guid, VALID_USER)

        assert session.values == {"name": "Nemo"}


class TestCancel:
    """Tests for cancelling creation contexts."""

    def test_cancel_open_context(self, creation_service, make_session, test_db_session):
        session = make_session(ResourceType.FISH)
        context = creation_service.open(session, "user")

        creation_service.cancel(session, context.guid)

        assert context.status == CreationStatus.CANCELLED
        assert context.guid not in session.creations
        assert session.fields["user"].state == FieldState.LISTING_CANDIDATES
        assert test_db_session.query(User).count() == 0

    def test_cancel_after_commit_keeps_row(self, creation_service, make_session, test_db_session):
        """Test cancelling after commit drops the result but not the row."""
        session = make_session(ResourceType.FISH)
        context = creation_service.open(session, "user")
        creation_service.submit(session, context.guid, VALID_USER)

        creation_service.cancel(session, context.guid)

        assert test_db_session.query(User).count() == 1
        assert context.guid not in session.creations
        with pytest.raises(NotFoundError):
            creation_service.submit(session, context.guid, VALID_USER)

    def test_cancelled_context_cannot_be_submitted(self, creation_service, make_session):
        session = make_session(ResourceType.FISH)
        context = creation_service.open(session, "user")
        creation_service.cancel(session, context.guid)
        # Re-attach to simulate a stale reference
        session.creations[context.guid] = context

        with pytest.raises(ConflictError):
            creation_service.submit(session, context.guid, VALID_USER)


class TestCreateRelated:
    """Tests for one-shot create_related()."""

    def test_create_related_polymorphic(self, creation_service, test_db_session):
        descriptor = get_resource(ResourceType.COMMENT).get_relation("commentable")

        record = creation_service.create_related(descriptor, "project", {"name": "Test project"})

        assert record.id.startswith("prj_")
        assert record.target_type == ResourceType.PROJECT

    def test_create_related_disabled(self, creation_service, test_db_session):
        """Test the gate holds even when the coordinator is called directly."""
        descriptor = belongs_to("course", ResourceType.COURSE, can_create=False)

        with pytest.raises(CreationDisabledError):
            creation_service.create_related(descriptor, None, {"name": "Algebra"})
