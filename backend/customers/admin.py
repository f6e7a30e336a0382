from django.contrib import admin

from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "npwp", "email", "phone")
    search_fields = ("name", "npwp", "email")
