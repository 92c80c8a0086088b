from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import TransactionViewSet

app_name = 'settlements'

router = DefaultRouter()
router.register(r'', TransactionViewSet, basename='transaction')

urlpatterns = [
    path('', include(router.urls)),
]
