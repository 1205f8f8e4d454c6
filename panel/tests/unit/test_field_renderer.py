"""
Unit tests for belongs-to field rendering and the field policy gate.
"""

import pytest

from panel.src.resources import ResourceType, belongs_to
from panel.src.services.candidate_service import (
    MORE_RECORDS_LABEL,
    CandidateRecord,
    CandidateSet,
)
from panel.src.services.field_policy import creation_label, is_creation_offered, is_searchable
from panel.src.services.field_renderer import PLACEHOLDER_LABEL, render_belongs_to
from panel.src.services.form_state import FieldSelection, FieldState


def _courses(*names, has_more=False, limit=10):
    records = tuple(
        CandidateRecord(id=f"crs_{i}", label=name, target_type=ResourceType.COURSE)
        for i, name in enumerate(names)
    )
    return CandidateSet(target_type=ResourceType.COURSE, records=records, has_more=has_more, limit=limit)


@pytest.fixture
def course_field():
    return belongs_to("course", ResourceType.COURSE)


class TestFieldPolicy:
    """Tests for the field policy gate."""

    def test_defaults(self, course_field):
        assert is_creation_offered(course_field) is True
        assert is_searchable(course_field) is False

    def test_flags(self):
        field = belongs_to("course", ResourceType.COURSE, searchable=True, can_create=False)
        assert is_creation_offered(field) is False
        assert is_searchable(field) is True

    def test_creation_label(self, course_field):
        assert creation_label(course_field, ResourceType.COURSE) == "Create new course"
        assert creation_label(course_field, ResourceType.COURSE_LINK) == "Create new course link"

    def test_no_creation_label_when_disabled(self):
        field = belongs_to("course", ResourceType.COURSE, can_create=False)
        assert creation_label(field, ResourceType.COURSE) is None

    def test_no_creation_label_without_type(self):
        field = belongs_to("commentable", types=["post", "project"])
        assert creation_label(field, None) is None


class TestRenderBelongsTo:
    """Tests for render_belongs_to()."""

    def test_truncated_list_with_sentinel(self, course_field):
        """Test limit 1 with two courses renders placeholder, first course, sentinel."""
        view = render_belongs_to(
            course_field,
            FieldSelection("course", state=FieldState.LISTING_CANDIDATES),
            _courses("Algebra", has_more=True, limit=1),
        )

        assert [o.label for o in view.options] == [PLACEHOLDER_LABEL, "Algebra", MORE_RECORDS_LABEL]
        assert view.options[-1].disabled is True
        assert view.options[-1].value == MORE_RECORDS_LABEL
        assert not any(o.disabled for o in view.options[:-1])
        assert view.create_label == "Create new course"

    def test_placeholder_selected_when_empty(self, course_field):
        view = render_belongs_to(course_field, FieldSelection("course"), _courses("Algebra"))
        assert view.options[0].selected is True
        assert view.selected_id is None

    def test_marks_selected_option(self, course_field):
        selection = FieldSelection("course", record_id="crs_1", label="Biology", state=FieldState.SELECTED)
        view = render_belongs_to(course_field, selection, _courses("Algebra", "Biology"))

        assert [o.value for o in view.options if o.selected] == ["crs_1"]
        assert view.state == "selected"

    def test_selection_outside_list_stays_visible(self, course_field):
        """Test a selected record cut off by the limit is still rendered."""
        selection = FieldSelection("course", record_id="crs_99", label="Zoology", state=FieldState.SELECTED)
        view = render_belongs_to(course_field, selection, _courses("Algebra", has_more=True, limit=1))

        assert [o.label for o in view.options] == [
            PLACEHOLDER_LABEL, "Zoology", "Algebra", MORE_RECORDS_LABEL
        ]
        assert view.options[1].selected is True

    def test_no_create_label_when_disabled(self):
        field = belongs_to("course", ResourceType.COURSE, can_create=False)
        view = render_belongs_to(field, FieldSelection("course"), _courses("Algebra"))
        assert view.create_label is None

    def test_searchable_field_has_no_static_options(self):
        field = belongs_to("course", ResourceType.COURSE, searchable=True)
        view = render_belongs_to(field, FieldSelection("course"), _courses("Algebra", "Biology"))

        assert view.searchable is True
        assert [o.label for o in view.options] == [PLACEHOLDER_LABEL]

    def test_polymorphic_awaiting_type(self):
        field = belongs_to("commentable", types=[ResourceType.POST, ResourceType.PROJECT])
        view = render_belongs_to(
            field, FieldSelection("commentable", state=FieldState.AWAITING_TARGET_TYPE)
        )

        assert view.kind == "polymorphic"
        assert view.target_type is None
        assert [o.label for o in view.type_options] == [PLACEHOLDER_LABEL, "Post", "Project"]
        assert view.create_label is None
        assert view.state == "awaiting_target_type"

    def test_polymorphic_with_type(self):
        field = belongs_to("commentable", types=[ResourceType.POST, ResourceType.PROJECT])
        selection = FieldSelection("commentable", target_type=ResourceType.POST)
        view = render_belongs_to(field, selection)

        assert view.target_type == "post"
        assert [o.value for o in view.type_options if o.selected] == ["post"]
        assert view.create_label == "Create new post"
