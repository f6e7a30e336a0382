# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models

class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        ('super_admin', 'Super Admin'),
        ('admin', 'Administration'),
        ('manager', 'Manager'),
        ('finance', 'Finance'),
        ('ops', 'Operations'),
        ('marketing', 'Marketing'),
        ('engineer', 'Engineering'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='ops')
    full_name = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
