from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from accounts.models import CustomUser

class Command(BaseCommand):
    help = 'Create test users for each agency role (ops requester, approvers, cashier)'

    def handle(self, *args, **options):
        users_data = [
            {'username': 'ops_user', 'password': 'ops_password', 'role': 'ops', 'full_name': 'Field Operations'},
            {'username': 'manager_user', 'password': 'manager_password', 'role': 'manager', 'full_name': 'Operations Manager'},
            {'username': 'finance_user', 'password': 'finance_password', 'role': 'finance', 'full_name': 'Finance Cashier'},
            {'username': 'admin_user', 'password': 'admin_password', 'role': 'admin', 'full_name': 'Administration'},
            {'username': 'marketing_user', 'password': 'marketing_password', 'role': 'marketing', 'full_name': 'Marketing'},
        ]

        for user_data in users_data:
            if CustomUser.objects.filter(username=user_data['username']).exists():
                self.stdout.write(
                    self.style.WARNING(f"User {user_data['username']} already exists")
                )
                continue

            user = CustomUser.objects.create(
                username=user_data['username'],
                password=make_password(user_data['password']),
                role=user_data['role'],
                full_name=user_data['full_name'],
            )

            self.stdout.write(
                self.style.SUCCESS(f"Successfully created {user_data['role']} user: {user.username}")
            )

        self.stdout.write(
            self.style.SUCCESS("All test users created successfully!")
        )
