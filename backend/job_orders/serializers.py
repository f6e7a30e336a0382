from __future__ import annotations

from rest_framework import serializers

from accounts.permissions import user_role

from .models import CostItem, Disbursement, JobOrder
from .services.bkk import (
    RELEASE_METHODS,
    calculate_settlement_difference,
    format_bkk_amount,
    get_available_actions,
)


class JobOrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)

    class Meta:
        model = JobOrder
        fields = "__all__"


class CostItemSerializer(serializers.ModelSerializer):
    variance = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)
    variance_pct = serializers.DecimalField(max_digits=9, decimal_places=2, read_only=True)

    class Meta:
        model = CostItem
        fields = [
            "id", "job_order", "category", "description", "budget_amount",
            "actual_amount", "status", "confirmed_by", "confirmed_at",
            "variance", "variance_pct", "created_at", "updated_at",
        ]
        # settlement owns these
        read_only_fields = ("job_order", "actual_amount", "status", "confirmed_by", "confirmed_at")


class DisbursementSerializer(serializers.ModelSerializer):
    job_order_number = serializers.CharField(source='job_order.jo_number', read_only=True)
    requester_name = serializers.SerializerMethodField()
    formatted_amount = serializers.SerializerMethodField()
    formatted_spent = serializers.SerializerMethodField()
    formatted_returned = serializers.SerializerMethodField()
    settlement_type = serializers.SerializerMethodField()
    available_actions = serializers.SerializerMethodField()

    class Meta:
        model = Disbursement
        fields = "__all__"

    def get_requester_name(self, obj):
        user = obj.requested_by
        if user is None:
            return None
        return getattr(user, 'full_name', '') or user.username

    def get_formatted_amount(self, obj):
        return format_bkk_amount(obj.amount_requested)

    def get_formatted_spent(self, obj):
        return format_bkk_amount(obj.amount_spent)

    def get_formatted_returned(self, obj):
        return format_bkk_amount(obj.amount_returned)

    def get_settlement_type(self, obj):
        if obj.amount_spent is None:
            return None
        return calculate_settlement_difference(obj.amount_requested, obj.amount_spent).type

    def get_available_actions(self, obj):
        request = self.context.get('request')
        if request is None:
            return ['view']
        is_requester = obj.requested_by_id is not None and obj.requested_by_id == request.user.pk
        return get_available_actions(obj.status, user_role(request.user), is_requester)


class DisbursementCreateSerializer(serializers.Serializer):
    # Presence and sign are checked by the BKK rules so messages stay consistent
    purpose = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    amount_requested = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, allow_null=True)
    cost_item = serializers.PrimaryKeyRelatedField(queryset=CostItem.objects.all(), required=False, allow_null=True)
    budget_category = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    budget_amount = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReleaseSerializer(serializers.Serializer):
    release_method = serializers.CharField(required=False, allow_blank=True, allow_null=True,
                                           help_text=f"One of {', '.join(RELEASE_METHODS)}")
    release_reference = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SettleSerializer(serializers.Serializer):
    amount_spent = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, allow_null=True)
    receipt_urls = serializers.ListField(child=serializers.URLField(), required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ---------- read-only projections ----------
class BKKSummarySerializer(serializers.Serializer):
    total_requested = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_released = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_settled = serializers.DecimalField(max_digits=18, decimal_places=2)
    pending_return = serializers.DecimalField(max_digits=18, decimal_places=2)
    count = serializers.DictField(child=serializers.IntegerField())


class AvailableBudgetSerializer(serializers.Serializer):
    budget_amount = serializers.DecimalField(max_digits=18, decimal_places=2)
    already_disbursed = serializers.DecimalField(max_digits=18, decimal_places=2)
    pending_requests = serializers.DecimalField(max_digits=18, decimal_places=2)
    available = serializers.DecimalField(max_digits=18, decimal_places=2)
