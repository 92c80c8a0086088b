from django.urls import path
from .views import group_messages

app_name = 'chat'

urlpatterns = [
    path('', group_messages, name='messages'),
]
