from django.contrib import admin
from .models import BundlePackage, StudentSubscription


@admin.register(BundlePackage)
class BundlePackageAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "session_count", "original_price", "discount_percentage", "final_price", "validity_days", "is_active")
    list_filter = ("type", "is_active")
    search_fields = ("name", "description")
    readonly_fields = ("final_price", "created_at", "updated_at")


@admin.register(StudentSubscription)
class StudentSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "bundle_name", "remaining_sessions", "total_sessions", "status", "expiry_date")
    list_filter = ("status",)
    search_fields = ("bundle_name", "student__username", "student__email")
    readonly_fields = ("created_at", "updated_at")
