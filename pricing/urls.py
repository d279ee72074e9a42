from django.urls import path
from . import views

app_name = "pricing"

urlpatterns = [
    path("preview/session/", views.session_price_preview, name="session_price_preview"),
    path("preview/bundle/<int:bundle_id>/", views.bundle_price_preview, name="bundle_price_preview"),
    path("preview/discount/<int:rule_id>/", views.discount_rule_preview, name="discount_rule_preview"),
    path("preview/tiers/", views.tiered_price_preview, name="tiered_price_preview"),
]
