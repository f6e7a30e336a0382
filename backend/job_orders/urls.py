from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    ApproveDisbursementView,
    CancelDisbursementView,
    CostItemAvailableBudgetView,
    DisbursementDetailView,
    JobOrderBKKSummaryView,
    JobOrderCostItemsView,
    JobOrderDisbursementsView,
    JobOrderViewSet,
    PendingDisbursementsView,
    RejectDisbursementView,
    ReleaseDisbursementView,
    SettleDisbursementView,
)

router = DefaultRouter()
router.register(r'job-orders', JobOrderViewSet, basename='job-orders')

urlpatterns = [
    path('job-orders/<int:id>/cost-items/', JobOrderCostItemsView.as_view(), name='job-order-cost-items'),
    path('job-orders/<int:id>/bkk/', JobOrderDisbursementsView.as_view(), name='job-order-bkk'),
    path('job-orders/<int:id>/bkk/summary/', JobOrderBKKSummaryView.as_view(), name='job-order-bkk-summary'),
    path('cost-items/<int:id>/available-budget/', CostItemAvailableBudgetView.as_view(), name='cost-item-available-budget'),
    path('bkk/pending/', PendingDisbursementsView.as_view(), name='bkk-pending'),
    path('bkk/<int:id>/', DisbursementDetailView.as_view(), name='bkk-detail'),
    path('bkk/<int:id>/approve/', ApproveDisbursementView.as_view(), name='bkk-approve'),
    path('bkk/<int:id>/reject/', RejectDisbursementView.as_view(), name='bkk-reject'),
    path('bkk/<int:id>/cancel/', CancelDisbursementView.as_view(), name='bkk-cancel'),
    path('bkk/<int:id>/release/', ReleaseDisbursementView.as_view(), name='bkk-release'),
    path('bkk/<int:id>/settle/', SettleDisbursementView.as_view(), name='bkk-settle'),
]
urlpatterns += router.urls
