# backend/core/management/commands/bootstrap_dev.py
import os

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import BaseCommand
from rest_framework.authtoken.models import Token


class Command(BaseCommand):
    help = "Idempotently prepare a dev database: super_admin user with DRF token and complexity criteria."

    def add_arguments(self, parser):
        parser.add_argument("--skip-criteria", action="store_true", help="Do not seed complexity criteria")

    def handle(self, *args, **opts):
        User = get_user_model()
        username = os.getenv("DEV_ADMIN_USER", "admin")
        email = os.getenv("DEV_ADMIN_EMAIL", "admin@example.com")
        password = os.getenv("DEV_ADMIN_PASS", "ChangeMe123!")

        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": email, "is_staff": True, "is_superuser": True, "role": "super_admin"},
        )
        if created:
            user.set_password(password)
            user.save()
            self.stdout.write(self.style.SUCCESS(f"Created superuser '{username}'"))
        else:
            self.stdout.write(f"Superuser '{username}' already exists")

        token, _ = Token.objects.get_or_create(user=user)
        self.stdout.write(self.style.SUCCESS(f"TOKEN: {token.key}"))

        if not opts["skip_criteria"]:
            call_command("seed_complexity_criteria")
