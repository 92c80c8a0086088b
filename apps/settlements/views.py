from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django.db.models import Q
from drf_spectacular.utils import extend_schema

from .models import Transaction
from .serializers import (
    TransactionSerializer,
    TransactionFilterSerializer,
    SendMoneySerializer,
    RequestMoneySerializer,
)
from .services import (
    send_money,
    request_money,
    complete_transaction,
    cancel_transaction,
)
from .exceptions import SettlementServiceError
from .permissions import IsTransactionParty
from apps.expenses.exceptions import InvalidAmountError
from apps.groups.permissions import require_group_member
from apps.members.services import get_member_for_user, MemberNotFoundError


class TransactionPagination(PageNumberPagination):
    """Custom pagination for transactions."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class TransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for the transaction log.

    list: Transactions of the current user (or of one group)
    retrieve: Get a specific transaction
    send: Send money to another member
    request_payment: Request money from another member
    complete: Mark a pending transaction as completed
    cancel: Cancel a pending transaction
    """

    queryset = Transaction.objects.select_related('group', 'from_member', 'to_member')
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated, IsTransactionParty]
    pagination_class = TransactionPagination
    lookup_field = 'reference'

    def get_queryset(self):
        """Filter transactions using input serializer validation."""
        queryset = super().get_queryset()

        filter_serializer = TransactionFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if self.action == 'list' and params.get('group'):
            group = require_group_member(self.request.user, params['group'])
            queryset = queryset.filter(group=group)
        else:
            member = get_member_for_user(self.request.user)
            if member is None:
                return queryset.none()
            queryset = queryset.filter(
                Q(from_member=member) |
                Q(to_member=member) |
                Q(group__memberships__member=member)
            ).distinct()

        if params.get('status'):
            queryset = queryset.filter(status=params['status'])

        return queryset.order_by('id')

    def _acting_member(self):
        member = get_member_for_user(self.request.user)
        if member is None:
            raise PermissionDenied('No member is linked to this user.')
        return member

    @extend_schema(request=SendMoneySerializer, responses={201: TransactionSerializer})
    @action(detail=False, methods=['post'])
    def send(self, request):
        """
        Send money to another member (completed immediately).

        POST /api/transactions/send/
        """
        serializer = SendMoneySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = self._acting_member()

        try:
            txn = send_money(
                from_member_id=member.id,
                to_member_id=serializer.validated_data['to_member'],
                amount=serializer.validated_data['amount'],
                description=serializer.validated_data['description'],
            )
        except MemberNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (SettlementServiceError, InvalidAmountError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=RequestMoneySerializer, responses={201: TransactionSerializer})
    @action(detail=False, methods=['post'], url_path='request')
    def request_payment(self, request):
        """
        Ask another member for money (pending until completed).

        POST /api/transactions/request/
        """
        serializer = RequestMoneySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = self._acting_member()

        try:
            txn = request_money(
                requester_id=member.id,
                payer_id=serializer.validated_data['from_member'],
                amount=serializer.validated_data['amount'],
                description=serializer.validated_data['description'],
            )
        except MemberNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (SettlementServiceError, InvalidAmountError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: TransactionSerializer})
    @action(detail=True, methods=['post'])
    def complete(self, request, reference=None):
        """
        POST /api/transactions/{id}/complete/
        """
        txn = self.get_object()
        txn = complete_transaction(reference=txn.reference)
        return Response(TransactionSerializer(txn).data)

    @extend_schema(request=None, responses={200: TransactionSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, reference=None):
        """
        POST /api/transactions/{id}/cancel/
        """
        txn = self.get_object()
        txn = cancel_transaction(reference=txn.reference)
        return Response(TransactionSerializer(txn).data)
