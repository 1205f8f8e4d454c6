"""
Unit tests for AssociationResolver.
"""

import pytest

from panel.src.resources import ResourceType, belongs_to
from panel.src.services.association_service import AssociationResolver
from panel.src.services.exceptions import InvalidTargetTypeError


@pytest.fixture
def fish_user():
    return belongs_to("user", ResourceType.USER)


@pytest.fixture
def commentable():
    return belongs_to("commentable", types=[ResourceType.POST, ResourceType.PROJECT])


class TestResolveDirect:
    """Direct relations always resolve to their single type."""

    def test_resolves_declared_type(self, fish_user):
        assert AssociationResolver.resolve(fish_user) == ResourceType.USER

    def test_ignores_current_type(self, fish_user):
        """Test a stray type on a direct relation is ignored."""
        assert AssociationResolver.resolve(fish_user, "post") == ResourceType.USER


class TestResolvePolymorphic:
    """Polymorphic relations resolve to the chosen allowed type."""

    @pytest.mark.parametrize("chosen", ["post", ResourceType.POST])
    def test_resolves_chosen_type(self, commentable, chosen):
        assert AssociationResolver.resolve(commentable, chosen) == ResourceType.POST

    def test_missing_type(self, commentable):
        with pytest.raises(InvalidTargetTypeError) as exc_info:
            AssociationResolver.resolve(commentable)

        assert exc_info.value.allowed == ["post", "project"]

    def test_type_outside_allowed_set(self, commentable):
        """Test a real resource type that the relation doesn't allow."""
        with pytest.raises(InvalidTargetTypeError) as exc_info:
            AssociationResolver.resolve(commentable, ResourceType.USER)

        assert exc_info.value.target_type == "user"

    def test_unknown_type(self, commentable):
        with pytest.raises(InvalidTargetTypeError):
            AssociationResolver.resolve(commentable, "spaceship")

    def test_try_resolve_awaiting_type(self, commentable):
        """Test try_resolve returns None until a type is chosen."""
        assert AssociationResolver.try_resolve(commentable) is None
        assert AssociationResolver.try_resolve(commentable, "project") == ResourceType.PROJECT

    def test_try_resolve_still_rejects_bad_type(self, commentable):
        with pytest.raises(InvalidTargetTypeError):
            AssociationResolver.try_resolve(commentable, "course")

    def test_resolve_has_no_side_effects(self, commentable):
        """Test resolving leaves the descriptor untouched."""
        before = commentable.allowed_target_types
        AssociationResolver.resolve(commentable, "post")
        assert commentable.allowed_target_types == before
