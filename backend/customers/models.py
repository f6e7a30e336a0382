from django.db import models

class Customer(models.Model):
    name = models.CharField(max_length=255, unique=True)
    npwp = models.CharField(max_length=32, blank=True, null=True, help_text="Indonesian tax ID")
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=255, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    def __str__(self):
        return self.name
