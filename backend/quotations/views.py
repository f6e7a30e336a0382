# quotations/views.py
import logging

from django.db import transaction

from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import CanConfigureCriteria

from .models import ComplexityCriterion, Quotation
from .serializers import (
    ClassificationPreviewSerializer,
    ComplexityCriterionSerializer,
    MarketClassificationSerializer,
    QuotationSerializer,
)
from .services import classification
from .services.market_classification import (
    CLASSIFICATION_FIELDS,
    COMPLEX,
    ClassificationInput,
    SIMPLE,
    count_by_market_type,
)

logger = logging.getLogger(__name__)


class QuotationViewSet(viewsets.ModelViewSet):
    serializer_class = QuotationSerializer
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        qs = Quotation.objects.select_related('customer').order_by('-created_at')
        market_type = self.request.query_params.get('market_type')
        if market_type in (SIMPLE, COMPLEX):
            qs = qs.filter(market_type=market_type)
        return qs

    def perform_create(self, serializer):
        serializer.instance = classification.create_quotation(self.request.user, **serializer.validated_data)

    def perform_update(self, serializer):
        with transaction.atomic():
            quotation = serializer.save()
            if any(name in serializer.validated_data for name in CLASSIFICATION_FIELDS):
                classification.reclassify(quotation)
                quotation.save()


class QuotationMarketCountsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        rows = Quotation.objects.values('market_type')
        return Response(count_by_market_type(rows))


class ClassificationPreviewView(APIView):
    """Classify a cargo record against the active criteria without saving it."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = ClassificationPreviewSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = classification.classify(ClassificationInput.from_mapping(ser.validated_data))
        return Response(MarketClassificationSerializer(result).data, status=status.HTTP_200_OK)


class ComplexityCriterionViewSet(viewsets.ModelViewSet):
    serializer_class = ComplexityCriterionSerializer
    permission_classes = [CanConfigureCriteria]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        qs = ComplexityCriterion.objects.order_by('display_order', 'code')
        if self.request.query_params.get('include_inactive') not in ('1', 'true'):
            qs = qs.filter(is_active=True)
        return qs

    def perform_update(self, serializer):
        criterion = serializer.save()
        logger.info("Complexity criterion %s updated by %s (weight %d, active %s)",
                    criterion.code, self.request.user, criterion.weight, criterion.is_active)
