from rest_framework import permissions
from rest_framework.exceptions import NotFound, PermissionDenied
from django.core.exceptions import ValidationError

from .models import Group


def require_group_member(user, group_id):
    """
    Get a group the user's catalog member belongs to.

    Raises:
        NotFound: If the group doesn't exist
        PermissionDenied: If the user is not in the group
    """
    try:
        group = Group.objects.select_related('owner').get(id=group_id)
    except (Group.DoesNotExist, ValidationError):
        raise NotFound('Group not found.')
    if not group.has_user(user):
        raise PermissionDenied('You must be a member of this group.')
    return group


class IsGroupMember(permissions.BasePermission):
    """
    Permission: User's catalog member must belong to the group.

    Works for a Group and for any object with a ``group`` attribute.
    """

    message = 'You must be a member of this group.'

    def has_object_permission(self, request, view, obj):
        group = obj if isinstance(obj, Group) else getattr(obj, 'group', None)
        if group is None:
            return False
        return group.has_user(request.user)


class IsGroupOwner(permissions.BasePermission):
    """
    Permission: User must be the group owner.
    """

    message = 'Only the group owner can do this.'

    def has_object_permission(self, request, view, obj):
        # obj is a Group instance
        return obj.owner.user_id is not None and obj.owner.user_id == request.user.id
