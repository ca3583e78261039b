from django.db import models


class Store(models.Model):
    """A boutique (tenant); products, orders and staff belong to one store"""
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=50, unique=True)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    whatsapp_number = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    currency = models.CharField(max_length=10, default='XOF')
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        # Only one default store
        if self.is_default:
            Store.objects.exclude(pk=self.pk).filter(is_default=True).update(is_default=False)

    class Meta:
        db_table = 'stores'
        ordering = ['name']
