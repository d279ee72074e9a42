from django.contrib import admin
from .models import DiscountRule, PricingRule


@admin.action(description="Toggle active flag")
def toggle_active(modeladmin, request, queryset):
    for rule in queryset:
        rule.toggle_active()


@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display = ("rule_name", "category", "base_price", "mentor_share", "is_active", "effective_date")
    list_filter = ("category", "is_active")
    search_fields = ("rule_name",)
    readonly_fields = ("created_at", "updated_at")
    actions = [toggle_active]


@admin.register(DiscountRule)
class DiscountRuleAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "value", "min_sessions", "max_sessions", "max_discount", "is_active")
    list_filter = ("type", "is_active")
    search_fields = ("name", "description")
    readonly_fields = ("created_at", "updated_at")
    actions = [toggle_active]
