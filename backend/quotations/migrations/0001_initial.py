import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ComplexityCriterion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, default="")),
                ("weight", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("rule", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name_plural": "complexity criteria",
                "ordering": ["display_order", "code"],
            },
        ),
        migrations.CreateModel(
            name="Quotation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quotation_number", models.CharField(max_length=16, unique=True)),
                ("title", models.CharField(max_length=255)),
                ("commodity", models.CharField(blank=True, max_length=255, null=True)),
                ("origin", models.CharField(blank=True, max_length=255, null=True)),
                ("destination", models.CharField(blank=True, max_length=255, null=True)),
                ("cargo_weight_kg", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("cargo_length_m", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("cargo_width_m", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("cargo_height_m", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("cargo_value", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("duration_days", models.IntegerField(blank=True, null=True)),
                ("is_new_route", models.BooleanField(blank=True, null=True)),
                ("terrain_type", models.CharField(blank=True, choices=[("normal", "Normal"), ("mountain", "Mountain"), ("unpaved", "Unpaved"), ("narrow", "Narrow")], max_length=20, null=True)),
                ("requires_special_permit", models.BooleanField(blank=True, null=True)),
                ("is_hazardous", models.BooleanField(blank=True, null=True)),
                ("market_type", models.CharField(choices=[("simple", "Simple"), ("complex", "Complex")], default="simple", max_length=10)),
                ("complexity_score", models.PositiveIntegerField(default=0)),
                ("complexity_factors", models.JSONField(blank=True, default=list)),
                ("requires_engineering", models.BooleanField(default=False)),
                ("engineering_status", models.CharField(choices=[("not_required", "Not required"), ("pending", "Pending"), ("in_progress", "In progress"), ("completed", "Completed")], default="not_required", max_length=20)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("engineering_review", "Engineering review"), ("sent", "Sent"), ("won", "Won"), ("lost", "Lost"), ("cancelled", "Cancelled")], default="draft", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="quotations", to="customers.customer")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "-created_at"], name="quotations__custome_4a7d10_idx"),
                    models.Index(fields=["market_type", "-created_at"], name="quotations__market__c2e8b5_idx"),
                ],
            },
        ),
    ]
