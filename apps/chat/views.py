from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    ChatMessageSerializer,
    MessageCreateSerializer,
    MessageFilterSerializer,
)
from .services import post_message, list_messages_for_group
from .exceptions import ChatServiceError
from apps.groups.permissions import require_group_member
from apps.groups.services import GroupNotFoundError, UnknownMemberError
from apps.members.services import get_member_for_user


@extend_schema(
    methods=['GET'],
    parameters=[MessageFilterSerializer],
    responses={200: ChatMessageSerializer(many=True)},
    tags=['chat'],
)
@extend_schema(
    methods=['POST'],
    request=MessageCreateSerializer,
    responses={201: ChatMessageSerializer},
    tags=['chat'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def group_messages(request):
    """
    Read or append to a group's message log.

    GET /api/chat/?group={id}
    POST /api/chat/ {"group": id, "content": "..."}
    """
    if request.method == 'GET':
        params = MessageFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        group = require_group_member(request.user, params.validated_data['group'])

        messages = list_messages_for_group(group_id=group.id)
        return Response(ChatMessageSerializer(messages, many=True).data)

    serializer = MessageCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    group = require_group_member(request.user, serializer.validated_data['group'])
    member = get_member_for_user(request.user)

    try:
        message = post_message(
            group_id=group.id,
            sender_id=member.id,
            content=serializer.validated_data['content'],
        )
    except GroupNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except (ChatServiceError, UnknownMemberError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(ChatMessageSerializer(message).data, status=status.HTTP_201_CREATED)
