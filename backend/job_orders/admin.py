from django.contrib import admin

from .models import CostItem, Disbursement, JobOrder


class CostItemInline(admin.TabularInline):
    model = CostItem
    extra = 0
    readonly_fields = ("actual_amount", "status", "confirmed_by", "confirmed_at")


@admin.register(JobOrder)
class JobOrderAdmin(admin.ModelAdmin):
    list_display = ("jo_number", "customer", "status", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("jo_number", "customer__name")
    date_hierarchy = "created_at"
    inlines = [CostItemInline]


@admin.register(CostItem)
class CostItemAdmin(admin.ModelAdmin):
    list_display = ("job_order", "category", "description", "budget_amount", "actual_amount", "status")
    list_filter = ("status", "category")
    search_fields = ("job_order__jo_number", "description")
    # Only BKK settlement moves a cost item out of 'open'
    readonly_fields = ("actual_amount", "status", "confirmed_by", "confirmed_at")


@admin.register(Disbursement)
class DisbursementAdmin(admin.ModelAdmin):
    list_display = ("bkk_number", "job_order", "purpose", "amount_requested", "amount_spent", "amount_returned", "status", "requested_at")
    list_filter = ("status", "release_method", "requested_at")
    search_fields = ("bkk_number", "job_order__jo_number", "purpose")
    date_hierarchy = "requested_at"

    def get_readonly_fields(self, request, obj=None):
        # Status and amounts move through the API workflow only
        if obj is not None:
            return [f.name for f in obj._meta.fields]
        return super().get_readonly_fields(request, obj)

    def has_add_permission(self, request):
        return False
