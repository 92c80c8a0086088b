from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import Expense
from .serializers import (
    ExpenseSerializer,
    ExpenseListSerializer,
    ExpenseCreateSerializer,
    ExpenseFilterSerializer,
    ExpenseResultSerializer,
    BudgetCheckSerializer,
)
from .services import ExpenseLedgerService
from .exceptions import ExpenseServiceError
from .permissions import IsGroupMemberForExpense
from apps.groups.permissions import require_group_member
from apps.groups.services import (
    GroupNotFoundError,
    GroupClosedError,
    UnknownMemberError,
)


class ExpensePagination(PageNumberPagination):
    """Custom pagination for expenses."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class ExpenseViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for expenses. Expenses are immutable once recorded.

    list: Expenses of the user's groups (filterable by group)
    create: Add an expense and update balances
    retrieve: Get a specific expense with its shares
    budget_check: Ask whether an amount would exceed the group budget
    """

    queryset = Expense.objects.select_related('payer', 'group').prefetch_related('shares__member')
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, IsGroupMemberForExpense]
    pagination_class = ExpensePagination

    def get_queryset(self):
        """Filter expenses using input serializer validation."""
        queryset = super().get_queryset()

        filter_serializer = ExpenseFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if self.action == 'list' and params.get('group'):
            group = require_group_member(self.request.user, params['group'])
            queryset = queryset.filter(group=group)
        else:
            queryset = queryset.filter(
                group__memberships__member__user=self.request.user
            ).distinct()

        if params.get('payer'):
            queryset = queryset.filter(payer_id=params['payer'])
        if params.get('category'):
            queryset = queryset.filter(category=params['category'])

        return queryset.order_by('group', 'position')

    def get_serializer_class(self):
        if self.action == 'list':
            return ExpenseListSerializer
        if self.action == 'create':
            return ExpenseCreateSerializer
        return ExpenseSerializer

    @extend_schema(
        request=ExpenseCreateSerializer,
        responses={201: ExpenseResultSerializer},
    )
    def create(self, request, *args, **kwargs):
        """
        Add an expense to a group.

        POST /api/expenses/
        """
        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        require_group_member(request.user, data['group'])

        try:
            result = ExpenseLedgerService.add_expense(
                group_id=data['group'],
                description=data['description'],
                amount=data['amount'],
                payer_id=data['payer'],
                participant_ids=data.get('participants'),
                split_mode=data['split_mode'],
                weights=data.get('weights'),
                category=data['category'],
                date=data.get('date'),
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except GroupClosedError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except (ExpenseServiceError, UnknownMemberError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        output = ExpenseResultSerializer({
            'expense': result.expense,
            'over_budget': result.over_budget,
            'total_expenses': result.group.total_expenses,
            'message': result.message.content,
        })
        return Response(output.data, status=status.HTTP_201_CREATED)

    @extend_schema(parameters=[BudgetCheckSerializer])
    @action(detail=False, methods=['get'])
    def budget_check(self, request):
        """
        Check an amount against the group budget before adding it.

        GET /api/expenses/budget_check/?group={id}&amount=120.00
        """
        params = BudgetCheckSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        group = require_group_member(request.user, params.validated_data['group'])
        try:
            would_exceed = ExpenseLedgerService.would_exceed_budget(
                group, params.validated_data['amount']
            )
        except ExpenseServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'would_exceed': would_exceed,
            'total_expenses': group.total_expenses,
            'budget': group.budget,
        })
