"""
Bundle catalog and student subscriptions.
Subscription balances change only through bundles.services.subscription_service.
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from bundles import config


class BundlePackage(models.Model):
    """Prepaid package of sessions. final_price is derived on every save."""

    name = models.CharField(max_length=200)
    description = models.TextField()
    type = models.CharField(max_length=20, choices=config.BUNDLE_TYPES)
    session_count = models.PositiveIntegerField()
    original_price = models.PositiveIntegerField()
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    final_price = models.IntegerField(editable=False, default=0)
    validity_days = models.PositiveIntegerField()
    features = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["type"], name="bundle_type_idx"),
            models.Index(fields=["is_active"], name="bundle_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.session_count} sessions)"

    def save(self, *args, **kwargs):
        from bundles.services.bundle_service import compute_bundle_final_price

        # unsaved instances can still hold raw strings
        for field_name in ("original_price", "discount_percentage"):
            setattr(self, field_name, self._meta.get_field(field_name).to_python(getattr(self, field_name)))
        self.final_price = compute_bundle_final_price(self.original_price, self.discount_percentage)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "final_price" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["final_price"]
        super().save(*args, **kwargs)


class StudentSubscription(models.Model):
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bundle_subscriptions",
    )
    bundle = models.ForeignKey(
        BundlePackage,
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    bundle_name = models.CharField(max_length=200)
    total_sessions = models.PositiveIntegerField()
    used_sessions = models.PositiveIntegerField(default=0)
    remaining_sessions = models.PositiveIntegerField()
    original_price = models.PositiveIntegerField()
    paid_price = models.IntegerField()
    discount_amount = models.IntegerField(default=0)
    purchase_date = models.DateTimeField()
    expiry_date = models.DateTimeField()
    status = models.CharField(max_length=20, choices=config.SUBSCRIPTION_STATUSES, default="active")
    transactions = models.JSONField(default=list, blank=True)  # payment/booking transaction ids

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-purchase_date"]
        indexes = [
            models.Index(fields=["status"], name="subscription_status_idx"),
        ]

    def __str__(self):
        return f"Subscription {self.bundle_name} student={self.student_id} ({self.status})"
