from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/                          - List user's groups
    # POST   /api/groups/                          - Create group
    # GET    /api/groups/{id}/                     - Group with members and balances
    # PATCH  /api/groups/{id}/                     - Update name, budget, color (owner)

    # Custom group actions
    # GET    /api/groups/{id}/members/             - Members with balances
    # GET    /api/groups/{id}/summary/             - Totals and budget usage
    # GET    /api/groups/{id}/settlement_preview/  - Transactions settle-up would emit
    # POST   /api/groups/{id}/settle_up/           - Settle and close the group

    # Include router URLs
    path('', include(router.urls)),
]
