"""
Custom permission classes for settlements app.
"""
from rest_framework.permissions import BasePermission

from apps.members.services import get_member_for_user


class IsTransactionParty(BasePermission):
    """
    Permission to act on a transaction.

    Allows if the user's catalog member pays or receives the money. Group
    members may also view (but not change) transactions of their group.
    """

    message = 'You are not part of this transaction.'

    def has_object_permission(self, request, view, obj):
        member = get_member_for_user(request.user)
        if obj.involves(member):
            return True
        if view.action == 'retrieve' and obj.group is not None:
            return obj.group.has_user(request.user)
        return False
