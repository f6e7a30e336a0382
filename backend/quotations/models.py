from django.conf import settings
from django.db import models

from .services.market_classification import (
    Criterion,
    MARKET_TYPE_CHOICES,
    SIMPLE,
    TERRAIN_TYPES,
)


class ComplexityCriterion(models.Model):
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    weight = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    display_order = models.PositiveIntegerField(default=0)
    # {"field": ..., "operator": ..., "value": ...}
    rule = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['display_order', 'code']
        verbose_name_plural = 'complexity criteria'

    def to_criterion(self) -> Criterion:
        return Criterion(
            code=self.code,
            name=self.name,
            weight=self.weight,
            is_active=self.is_active,
            rule=self.rule,
            description=self.description,
            display_order=self.display_order,
        )

    def __str__(self):
        return f"{self.code} ({self.weight})"


class Quotation(models.Model):
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('engineering_review', 'Engineering review'),
        ('sent', 'Sent'),
        ('won', 'Won'),
        ('lost', 'Lost'),
        ('cancelled', 'Cancelled'),
    ]
    ENGINEERING_STATUS_CHOICES = [
        ('not_required', 'Not required'),
        ('pending', 'Pending'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
    ]
    TERRAIN_CHOICES = [(t, t.title()) for t in TERRAIN_TYPES]

    quotation_number = models.CharField(max_length=16, unique=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='quotations')
    title = models.CharField(max_length=255)
    commodity = models.CharField(max_length=255, blank=True, null=True)
    origin = models.CharField(max_length=255, blank=True, null=True)
    destination = models.CharField(max_length=255, blank=True, null=True)

    # Cargo and route characteristics; null means unknown
    cargo_weight_kg = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    cargo_length_m = models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)
    cargo_width_m = models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)
    cargo_height_m = models.DecimalField(max_digits=8, decimal_places=2, blank=True, null=True)
    cargo_value = models.DecimalField(max_digits=18, decimal_places=2, blank=True, null=True)
    duration_days = models.IntegerField(blank=True, null=True)
    is_new_route = models.BooleanField(blank=True, null=True)
    terrain_type = models.CharField(max_length=20, choices=TERRAIN_CHOICES, blank=True, null=True)
    requires_special_permit = models.BooleanField(blank=True, null=True)
    is_hazardous = models.BooleanField(blank=True, null=True)

    market_type = models.CharField(max_length=10, choices=MARKET_TYPE_CHOICES, default=SIMPLE)
    complexity_score = models.PositiveIntegerField(default=0)
    complexity_factors = models.JSONField(default=list, blank=True)
    requires_engineering = models.BooleanField(default=False)
    engineering_status = models.CharField(max_length=20, choices=ENGINEERING_STATUS_CHOICES, default='not_required')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['customer', '-created_at'], name='quotations__custome_4a7d10_idx'),
            models.Index(fields=['market_type', '-created_at'], name='quotations__market__c2e8b5_idx'),
        ]

    def __str__(self):
        return self.quotation_number
