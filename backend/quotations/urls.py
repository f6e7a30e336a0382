from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    ClassificationPreviewView,
    ComplexityCriterionViewSet,
    QuotationMarketCountsView,
    QuotationViewSet,
)

router = DefaultRouter()
router.register(r'quotations', QuotationViewSet, basename='quotations')
router.register(r'complexity-criteria', ComplexityCriterionViewSet, basename='complexity-criteria')

urlpatterns = [
    path('quotations/classify/', ClassificationPreviewView.as_view(), name='quotation-classify'),
    path('quotations/market-counts/', QuotationMarketCountsView.as_view(), name='quotation-market-counts'),
]
urlpatterns += router.urls
