from django.urls import path, include
from rest_framework.routers import DefaultRouter

from auths.api.views import LoginAPIView
from vehicles.api.views import (
    ComparisonReportAPIView,
    DashboardStatsAPIView,
    ProfitReportAPIView,
    VehicleViewSet,
)

# Create router for ViewSets
router = DefaultRouter()
router.register(r'vehicles', VehicleViewSet, basename="vehicles")


urlpatterns = [
    path('login/', LoginAPIView.as_view(), name='login'),
    path('dashboard/stats/', DashboardStatsAPIView.as_view(), name='dashboard-stats'),
    path('reports/profit/', ProfitReportAPIView.as_view(), name='profit-report'),
    path('reports/comparison/', ComparisonReportAPIView.as_view(), name='comparison-report'),
    path('', include(router.urls)),
]
