from django.contrib import admin

from .models import ComplexityCriterion, Quotation


@admin.register(ComplexityCriterion)
class ComplexityCriterionAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'weight', 'is_active', 'display_order')
    list_filter = ('is_active',)
    list_editable = ('weight', 'is_active', 'display_order')
    search_fields = ('code', 'name')
    ordering = ('display_order', 'code')


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ('quotation_number', 'customer', 'title', 'market_type', 'complexity_score',
                    'engineering_status', 'status', 'created_at')
    list_filter = ('market_type', 'status', 'engineering_status')
    search_fields = ('quotation_number', 'title', 'customer__name')
    readonly_fields = ('quotation_number', 'market_type', 'complexity_score', 'complexity_factors',
                       'requires_engineering', 'created_by', 'created_at', 'updated_at')
