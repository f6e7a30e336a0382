from django.conf import settings
from django.db import models

from .services.bkk import BKKStatus, CostItemStatus, RELEASE_METHODS


class JobOrder(models.Model):
    STATUS_CHOICES = [('active', 'Active'), ('completed', 'Completed'), ('cancelled', 'Cancelled')]

    jo_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='job_orders')
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.jo_number


class CostItem(models.Model):
    job_order = models.ForeignKey(JobOrder, on_delete=models.CASCADE, related_name='cost_items')
    category = models.CharField(max_length=50)
    description = models.CharField(max_length=255)
    budget_amount = models.DecimalField(max_digits=18, decimal_places=2)
    # Written only by BKK settlement
    actual_amount = models.DecimalField(max_digits=18, decimal_places=2, blank=True, null=True)
    status = models.CharField(max_length=20, choices=CostItemStatus.CHOICES, default=CostItemStatus.OPEN)
    confirmed_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    confirmed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['category', 'id']

    @property
    def is_closed(self) -> bool:
        return self.status in CostItemStatus.CLOSED

    @property
    def variance(self):
        if self.actual_amount is None:
            return None
        return self.actual_amount - self.budget_amount

    @property
    def variance_pct(self):
        if self.actual_amount is None or not self.budget_amount:
            return None
        return round((self.actual_amount - self.budget_amount) / self.budget_amount * 100, 2)

    def __str__(self):
        return f"{self.job_order.jo_number} / {self.category}: {self.description}"


class Disbursement(models.Model):
    """Bukti Kas Keluar: a cash disbursement voucher raised against a job order."""
    RELEASE_METHOD_CHOICES = [(m, m.title()) for m in RELEASE_METHODS]

    bkk_number = models.CharField(max_length=16, unique=True)
    job_order = models.ForeignKey(JobOrder, on_delete=models.PROTECT, related_name='disbursements')
    cost_item = models.ForeignKey(CostItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='disbursements')
    purpose = models.TextField()
    budget_category = models.CharField(max_length=50, blank=True, null=True)
    budget_amount = models.DecimalField(max_digits=18, decimal_places=2, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=BKKStatus.CHOICES, default=BKKStatus.PENDING)

    amount_requested = models.DecimalField(max_digits=18, decimal_places=2)
    amount_spent = models.DecimalField(max_digits=18, decimal_places=2, blank=True, null=True)
    amount_returned = models.DecimalField(max_digits=18, decimal_places=2, blank=True, null=True)

    requested_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name='+')
    requested_at = models.DateTimeField(auto_now_add=True)
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, null=True)
    released_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    released_at = models.DateTimeField(null=True, blank=True)
    release_method = models.CharField(max_length=10, choices=RELEASE_METHOD_CHOICES, blank=True, null=True)
    release_reference = models.CharField(max_length=100, blank=True, null=True)
    settled_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    settled_at = models.DateTimeField(null=True, blank=True)
    receipt_urls = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['job_order', '-created_at'], name='job_orders__job_ord_6f1c2a_idx'),
            models.Index(fields=['status', 'requested_at'], name='job_orders__status_9b3e41_idx'),
        ]
        verbose_name = 'BKK'
        verbose_name_plural = 'BKKs'

    def __str__(self):
        return self.bkk_number
