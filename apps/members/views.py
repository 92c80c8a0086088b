from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .models import Member
from .serializers import (
    MemberSerializer,
    MemberSearchSerializer,
    MemberSearchResultSerializer,
)
from .services import search_members, get_member_for_user


class MemberViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to the participant catalog.

    list: All catalog members
    retrieve: One member
    search: Fuzzy search by name or contact id
    me: The member linked to the current user
    """

    queryset = Member.objects.all()
    serializer_class = MemberSerializer
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[
            OpenApiParameter('q', str, required=True),
            OpenApiParameter('threshold', int, required=False),
        ],
        responses={200: MemberSearchResultSerializer(many=True)},
    )
    @action(detail=False, methods=['get'])
    def search(self, request):
        """
        Fuzzy search over the catalog.

        GET /api/members/search/?q=marta
        """
        params = MemberSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        matches = search_members(
            query=params.validated_data['q'],
            threshold=params.validated_data.get('threshold'),
        )
        data = [{'member': member, 'score': score} for member, score in matches]
        return Response(MemberSearchResultSerializer(data, many=True).data)

    @action(detail=False, methods=['get'])
    def me(self, request):
        """
        Catalog entry of the acting user.

        GET /api/members/me/
        """
        member = get_member_for_user(request.user)
        if member is None:
            return Response({'error': 'No member linked to this user'}, status=404)
        return Response(MemberSerializer(member).data)
