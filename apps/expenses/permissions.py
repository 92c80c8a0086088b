"""
Custom permission classes for expenses app.
"""
from rest_framework.permissions import BasePermission


class IsGroupMemberForExpense(BasePermission):
    """
    Permission to check if user is a member of the expense's group.

    Creation is checked in the view, where the group ID has been validated.
    """

    message = 'You must be a member of this group to view this expense.'

    def has_object_permission(self, request, view, obj):
        return obj.group.has_user(request.user)
