# job_orders/views.py
import logging

from django.shortcuts import get_object_or_404

from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsManagerOrFinance

from .models import CostItem, Disbursement, JobOrder
from .serializers import (
    AvailableBudgetSerializer,
    BKKSummarySerializer,
    CostItemSerializer,
    DisbursementCreateSerializer,
    DisbursementSerializer,
    JobOrderSerializer,
    RejectSerializer,
    ReleaseSerializer,
    SettleSerializer,
)
from .services import workflow
from .services.workflow import (
    DisbursementError,
    DisbursementNotFound,
    DisbursementPermissionError,
)

logger = logging.getLogger(__name__)


def _error_response(exc: DisbursementError) -> Response:
    """Map workflow failures onto HTTP: 404 missing, 403 role, 400 otherwise."""
    if isinstance(exc, DisbursementNotFound):
        return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, DisbursementPermissionError):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


# ---- Job orders and their cost items ----
class JobOrderViewSet(viewsets.ModelViewSet):
    queryset = JobOrder.objects.select_related('customer').order_by('-created_at')
    serializer_class = JobOrderSerializer
    http_method_names = ['get', 'post', 'patch', 'head', 'options']


class JobOrderCostItemsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        job_order = get_object_or_404(JobOrder, pk=id)
        return Response(CostItemSerializer(job_order.cost_items.all(), many=True).data)

    def post(self, request, id):
        job_order = get_object_or_404(JobOrder, pk=id)
        ser = CostItemSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        item = ser.save(job_order=job_order)
        return Response(CostItemSerializer(item).data, status=status.HTTP_201_CREATED)


class CostItemAvailableBudgetView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        cost_item = get_object_or_404(CostItem, pk=id)
        budget = workflow.available_budget_for(cost_item)
        return Response(AvailableBudgetSerializer(budget).data)


# ---- BKK list / create / summary ----
class JobOrderDisbursementsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        job_order = get_object_or_404(JobOrder, pk=id)
        qs = (job_order.disbursements
              .select_related('job_order', 'requested_by', 'cost_item')
              .order_by('-created_at'))
        return Response(DisbursementSerializer(qs, many=True, context={'request': request}).data)

    def post(self, request, id):
        job_order = get_object_or_404(JobOrder, pk=id)
        ser = DisbursementCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            bkk = workflow.create_disbursement(
                job_order,
                request.user,
                purpose=data.get('purpose'),
                amount_requested=data.get('amount_requested'),
                cost_item=data.get('cost_item'),
                budget_category=data.get('budget_category'),
                budget_amount=data.get('budget_amount'),
                notes=data.get('notes'),
            )
        except DisbursementError as exc:
            return _error_response(exc)

        return Response(DisbursementSerializer(bkk, context={'request': request}).data,
                        status=status.HTTP_201_CREATED)


class JobOrderBKKSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        job_order = get_object_or_404(JobOrder, pk=id)
        summary = workflow.summary_for_job_order(job_order)
        return Response(BKKSummarySerializer(summary).data)


class PendingDisbursementsView(APIView):
    permission_classes = [IsManagerOrFinance]

    def get(self, request):
        qs = workflow.pending_queue()
        return Response(DisbursementSerializer(qs, many=True, context={'request': request}).data)


class DisbursementDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        bkk = get_object_or_404(Disbursement.objects.select_related('job_order', 'requested_by', 'cost_item'), pk=id)
        return Response(DisbursementSerializer(bkk, context={'request': request}).data)


# ---- Status transitions ----
class DisbursementTransitionView(APIView):
    """POST endpoint that runs one workflow step and returns the updated BKK."""
    permission_classes = [IsAuthenticated]
    input_serializer = None

    def perform(self, request, id, data):
        raise NotImplementedError

    def post(self, request, id):
        data = {}
        if self.input_serializer is not None:
            ser = self.input_serializer(data=request.data)
            ser.is_valid(raise_exception=True)
            data = ser.validated_data

        try:
            bkk = self.perform(request, id, data)
        except DisbursementError as exc:
            logger.info("BKK %s %s refused: %s", id, self.__class__.__name__, exc)
            return _error_response(exc)

        return Response(DisbursementSerializer(bkk, context={'request': request}).data,
                        status=status.HTTP_200_OK)


class ApproveDisbursementView(DisbursementTransitionView):
    def perform(self, request, id, data):
        return workflow.approve(id, request.user)


class RejectDisbursementView(DisbursementTransitionView):
    input_serializer = RejectSerializer

    def perform(self, request, id, data):
        return workflow.reject(id, request.user, data.get('reason'))


class CancelDisbursementView(DisbursementTransitionView):
    def perform(self, request, id, data):
        return workflow.cancel(id, request.user)


class ReleaseDisbursementView(DisbursementTransitionView):
    input_serializer = ReleaseSerializer

    def perform(self, request, id, data):
        return workflow.release(id, request.user, data.get('release_method'), data.get('release_reference'))


class SettleDisbursementView(DisbursementTransitionView):
    input_serializer = SettleSerializer

    def perform(self, request, id, data):
        return workflow.settle(id, request.user, data.get('amount_spent'),
                               receipt_urls=data.get('receipt_urls'), notes=data.get('notes'))
