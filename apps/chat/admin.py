from django.contrib import admin
from .models import ChatMessage


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ['sender_name', 'group', 'kind', 'short_content', 'timestamp']
    list_filter = ['kind', 'timestamp']
    search_fields = ['content', 'sender_name', 'group__name']
    readonly_fields = ['reference', 'timestamp']

    def short_content(self, obj):
        return obj.content[:60]
    short_content.short_description = 'Content'
