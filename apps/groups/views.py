from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django.db.models import Prefetch
from drf_spectacular.utils import extend_schema

from .models import Group, GroupMember
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    GroupSummarySerializer,
)
from .permissions import IsGroupMember, IsGroupOwner

from apps.groups.services import (
    create_group,
    update_group,
    get_group_by_id,
    get_group_members,
    # Exceptions
    GroupsServiceError,
    GroupNotFoundError,
    GroupClosedError,
)
from apps.expenses.services import ExpenseLedgerService
from apps.members.services import get_member_for_user
from apps.settlements.exceptions import AlreadySettledError
from apps.settlements.serializers import (
    PlannedTransferSerializer,
    SettleUpInputSerializer,
    TransactionSerializer,
)
from apps.settlements.services import preview_settlement, settle_up


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for groups and their ledger.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all groups (user is member of)
    create: Create a new group
    retrieve: Get a group with members and balances
    partial_update: Rename, re-budget or recolor a group (owner only)
    members: Members in display order
    summary: Totals, budget usage and spending per category
    settlement_preview: Transactions settle-up would emit
    settle_up: Close the group and emit settlement transactions (owner only)
    """

    queryset = Group.objects.select_related('owner').prefetch_related(
        Prefetch('memberships', queryset=GroupMember.objects.select_related('member'))
    )
    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated, IsGroupMember]
    pagination_class = GroupPagination

    def get_queryset(self):
        """Return only groups where user is a member."""
        return super().get_queryset().filter(
            memberships__member__user=self.request.user
        ).distinct()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action == 'partial_update':
            return GroupUpdateSerializer
        return GroupSerializer

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action in ('partial_update', 'settle_up'):
            return [IsAuthenticated(), IsGroupOwner()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        """Create a new group; the caller must be one of its members."""
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        member = get_member_for_user(request.user)
        if member is None:
            raise PermissionDenied('No member is linked to this user.')
        if member.id not in data['members']:
            return Response(
                {'error': 'You must be one of the group members'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            group = create_group(
                name=data['name'],
                member_ids=data['members'],
                owner_id=data.get('owner', member.id),
                budget=data.get('budget'),
                currency=data.get('currency'),
                color=data.get('color'),
            )
        except GroupsServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        group = get_group_by_id(group_id=group.id)
        output_serializer = GroupSerializer(group, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=GroupUpdateSerializer, responses={200: GroupSerializer})
    def partial_update(self, request, *args, **kwargs):
        """Update name, budget or color of an open group."""
        group = self.get_object()
        serializer = GroupUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            update_group(
                group_id=group.id,
                name=data.get('name'),
                budget=data.get('budget'),
                clear_budget='budget' in data and data['budget'] is None,
                color=data.get('color'),
            )
        except GroupClosedError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except GroupsServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        group = get_group_by_id(group_id=group.id)
        return Response(GroupSerializer(group, context={'request': request}).data)

    @extend_schema(responses={200: GroupMemberSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Get all members of the group with balances."""
        group = self.get_object()
        memberships = get_group_members(group_id=group.id)
        serializer = GroupMemberSerializer(memberships, many=True)
        return Response(serializer.data)

    @extend_schema(responses={200: GroupSummarySerializer})
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """
        Get totals, budget usage and spending per category.

        GET /api/groups/{id}/summary/
        """
        group = self.get_object()
        summary = ExpenseLedgerService.get_group_summary(group_id=group.id)
        return Response(GroupSummarySerializer(summary).data)

    @extend_schema(responses={200: PlannedTransferSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def settlement_preview(self, request, pk=None):
        """
        Transactions that settling up now would emit. Writes nothing.

        GET /api/groups/{id}/settlement_preview/
        """
        group = self.get_object()
        try:
            plan = preview_settlement(group_id=group.id)
        except AlreadySettledError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except GroupsServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(PlannedTransferSerializer(plan, many=True).data)

    @extend_schema(request=SettleUpInputSerializer, responses={200: TransactionSerializer(many=True)})
    @action(detail=True, methods=['post'])
    def settle_up(self, request, pk=None):
        """
        Close the group and emit settlement transactions.

        POST /api/groups/{id}/settle_up/
        """
        group = self.get_object()
        serializer = SettleUpInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = settle_up(
                group_id=group.id,
                description=serializer.validated_data['description'],
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except AlreadySettledError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except GroupsServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'group': GroupSerializer(get_group_by_id(group_id=group.id)).data,
            'transactions': TransactionSerializer(result.transactions, many=True).data,
        })
