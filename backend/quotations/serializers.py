from __future__ import annotations

from rest_framework import serializers

from .models import ComplexityCriterion, Quotation
from .services import criteria_config
from .services.market_classification import (
    CLASSIFICATION_FIELDS,
    TERRAIN_TYPES,
    format_complexity_score,
    validate_cargo_specifications,
)


def _check_cargo_specs(attrs, instance=None):
    specs = {name: attrs.get(name, getattr(instance, name, None)) for name in CLASSIFICATION_FIELDS}
    valid, errors = validate_cargo_specifications(specs)
    if not valid:
        raise serializers.ValidationError(errors)


class ComplexityFactorSerializer(serializers.Serializer):
    criteria_code = serializers.CharField()
    criteria_name = serializers.CharField()
    weight = serializers.IntegerField()
    triggered_value = serializers.CharField()


class QuotationSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    formatted_score = serializers.SerializerMethodField()

    class Meta:
        model = Quotation
        fields = "__all__"
        # classification owns these
        read_only_fields = (
            "quotation_number", "market_type", "complexity_score", "complexity_factors",
            "requires_engineering", "engineering_status", "status", "created_by",
        )

    def get_formatted_score(self, obj):
        return format_complexity_score(obj.complexity_score)

    def validate(self, attrs):
        _check_cargo_specs(attrs, self.instance)
        return attrs


class ClassificationPreviewSerializer(serializers.Serializer):
    cargo_weight_kg = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    cargo_length_m = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    cargo_width_m = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    cargo_height_m = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    cargo_value = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, allow_null=True)
    duration_days = serializers.IntegerField(required=False, allow_null=True)
    is_new_route = serializers.BooleanField(required=False, allow_null=True)
    terrain_type = serializers.ChoiceField(choices=TERRAIN_TYPES, required=False, allow_null=True)
    requires_special_permit = serializers.BooleanField(required=False, allow_null=True)
    is_hazardous = serializers.BooleanField(required=False, allow_null=True)

    def validate(self, attrs):
        _check_cargo_specs(attrs)
        return attrs


class MarketClassificationSerializer(serializers.Serializer):
    market_type = serializers.CharField()
    complexity_score = serializers.IntegerField()
    complexity_factors = ComplexityFactorSerializer(many=True)
    requires_engineering = serializers.BooleanField()
    formatted_score = serializers.SerializerMethodField()

    def get_formatted_score(self, obj):
        return format_complexity_score(obj.complexity_score)


class ComplexityCriterionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplexityCriterion
        fields = [
            "id", "code", "name", "description", "weight", "is_active",
            "display_order", "rule", "created_at", "updated_at",
        ]

    def validate_rule(self, value):
        code = self.initial_data.get("code") or getattr(self.instance, "code", "")
        errors = criteria_config.validate_rule(code, value)
        if errors:
            raise serializers.ValidationError(errors)
        return value
