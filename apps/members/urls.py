from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'members'

router = DefaultRouter()
router.register(r'', views.MemberViewSet, basename='member')

urlpatterns = [
    # GET    /api/members/          - List catalog
    # GET    /api/members/{id}/     - Member details
    # GET    /api/members/search/   - Fuzzy search
    # GET    /api/members/me/       - Member of the current user
    path('', include(router.urls)),
]
