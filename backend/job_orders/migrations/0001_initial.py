import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


BKK_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("rejected", "Rejected"),
    ("released", "Released"),
    ("settled", "Settled"),
    ("cancelled", "Cancelled"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="JobOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("jo_number", models.CharField(max_length=32, unique=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("active", "Active"), ("completed", "Completed"), ("cancelled", "Cancelled")], default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="job_orders", to="customers.customer")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="CostItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("category", models.CharField(max_length=50)),
                ("description", models.CharField(max_length=255)),
                ("budget_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("actual_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("status", models.CharField(choices=[("open", "Open"), ("confirmed", "Confirmed"), ("exceeded", "Exceeded")], default="open", max_length=20)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("confirmed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("job_order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="cost_items", to="job_orders.joborder")),
            ],
            options={
                "ordering": ["category", "id"],
            },
        ),
        migrations.CreateModel(
            name="Disbursement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bkk_number", models.CharField(max_length=16, unique=True)),
                ("purpose", models.TextField()),
                ("budget_category", models.CharField(blank=True, max_length=50, null=True)),
                ("budget_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=BKK_STATUS_CHOICES, default="pending", max_length=20)),
                ("amount_requested", models.DecimalField(decimal_places=2, max_digits=18)),
                ("amount_spent", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("amount_returned", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("requested_at", models.DateTimeField(auto_now_add=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                ("release_method", models.CharField(blank=True, choices=[("cash", "Cash"), ("transfer", "Transfer")], max_length=10, null=True)),
                ("release_reference", models.CharField(blank=True, max_length=100, null=True)),
                ("settled_at", models.DateTimeField(blank=True, null=True)),
                ("receipt_urls", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("cost_item", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="disbursements", to="job_orders.costitem")),
                ("job_order", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="disbursements", to="job_orders.joborder")),
                ("released_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("requested_by", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("settled_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "BKK",
                "verbose_name_plural": "BKKs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["job_order", "-created_at"], name="job_orders__job_ord_6f1c2a_idx"),
                    models.Index(fields=["status", "requested_at"], name="job_orders__status_9b3e41_idx"),
                ],
            },
        ),
    ]
