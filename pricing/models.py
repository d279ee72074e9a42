"""
Pricing catalog models. Admin-maintained, read-only to the calculators.
Amounts are integer currency units; percentages are 0-100 decimals.
"""
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from pricing import config

PERCENT_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]


class PricingRule(models.Model):
    """Base session price and mentor share. Only session_pricing rules feed the calculator."""

    rule_name = models.CharField(max_length=200)
    category = models.CharField(max_length=30, choices=config.PRICING_CATEGORIES, default="session_pricing")
    base_price = models.PositiveIntegerField(help_text="Price of a 60-minute session")
    mentor_share = models.DecimalField(max_digits=5, decimal_places=2, validators=PERCENT_VALIDATORS)
    platform_fee = models.DecimalField(max_digits=5, decimal_places=2, validators=PERCENT_VALIDATORS, default=0)
    # [{"session_count": 5, "discount_percentage": 10}, ...]
    discount_tiers = models.JSONField(default=list, blank=True)
    # {"new_student_discount": 5, "loyalty_discount": 3, "referral_discount": 2}
    special_rates = models.JSONField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    effective_date = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["effective_date", "id"]
        indexes = [
            models.Index(fields=["is_active"], name="pricingrule_active_idx"),
            models.Index(fields=["category"], name="pricingrule_category_idx"),
        ]

    def __str__(self):
        return f"{self.rule_name} ({self.category})"

    def toggle_active(self):
        self.is_active = not self.is_active
        self.save(update_fields=["is_active", "updated_at"])


class DiscountRule(models.Model):
    """Session-count discount. Exactly one applicable rule is chosen per purchase."""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=config.DISCOUNT_TYPES)
    value = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    min_sessions = models.PositiveIntegerField(default=0)
    max_sessions = models.PositiveIntegerField(null=True, blank=True)  # null = unbounded
    min_amount = models.PositiveIntegerField(null=True, blank=True)
    max_discount = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)
    applicable_roles = models.JSONField(default=list, blank=True)  # empty = every role

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["is_active"], name="discountrule_active_idx"),
            models.Index(fields=["type"], name="discountrule_type_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.type} {self.value})"

    def clean(self):
        if self.type == "percentage" and self.value is not None and self.value > 100:
            raise ValidationError({"value": "Percentage discounts must be between 0 and 100."})
        if self.max_sessions is not None and self.max_sessions < (self.min_sessions or 0):
            raise ValidationError({"max_sessions": "max_sessions must not be lower than min_sessions."})
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValidationError({"valid_until": "valid_until must be after valid_from."})

    def toggle_active(self):
        self.is_active = not self.is_active
        self.save(update_fields=["is_active", "updated_at"])
