"""
Association resolver.

Determines the concrete target type of a belongs-to relation: the single
allowed type for direct relations, the user-chosen type for polymorphic
ones. Side-effect free.
"""

from typing import Optional, Union

from panel.src.resources import RelationDescriptor, RelationKind, ResourceType
from panel.src.services.exceptions import InvalidTargetTypeError


class AssociationResolver:
    """
    Resolves relation target types.

    Usage:
        >>> AssociationResolver.resolve(fish_user)
        <ResourceType.USER: 'user'>
        >>> AssociationResolver.resolve(commentable, "post")
        <ResourceType.POST: 'post'>
    """

    @staticmethod
    def resolve(
        descriptor: RelationDescriptor,
        current_target_type: Optional[Union[ResourceType, str]] = None,
    ) -> ResourceType:
        """
        Resolve the target type of a relation.

        Args:
            descriptor: Relation being resolved
            current_target_type: Chosen type (required for polymorphic relations,
                ignored for direct ones)

        Returns:
            The resolved ResourceType

        Raises:
            InvalidTargetTypeError: If a polymorphic relation gets no type, an
                unknown type, or a type outside its allowed set
        """
        if descriptor.kind == RelationKind.DIRECT:
            return descriptor.allowed_target_types[0]

        allowed = [t.value for t in descriptor.allowed_target_types]

        if current_target_type is None or current_target_type == "":
            raise InvalidTargetTypeError(descriptor.relation_name, None, allowed)

        try:
            target_type = ResourceType(current_target_type)
        except ValueError:
            raise InvalidTargetTypeError(descriptor.relation_name, current_target_type, allowed)

        if target_type not in descriptor.allowed_target_types:
            raise InvalidTargetTypeError(descriptor.relation_name, target_type.value, allowed)

        return target_type

    @staticmethod
    def try_resolve(
        descriptor: RelationDescriptor,
        current_target_type: Optional[Union[ResourceType, str]] = None,
    ) -> Optional[ResourceType]:
        """
        Resolve, returning None while a polymorphic relation awaits its type.

        Still raises InvalidTargetTypeError for a type that is given but not allowed.
        """
        if descriptor.is_polymorphic and not current_target_type:
            return None
        return AssociationResolver.resolve(descriptor, current_target_type)
