"""
Pricing configuration: single source of truth for session pricing constants.

All monetary amounts are integer currency units (IDR) unless otherwise noted.
Percentages are plain numbers in the 0-100 range.
"""
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

# Fallback rate per minute when no active session_pricing rule exists
FALLBACK_RATE_PER_MINUTE = 2000

# Base prices in rules are defined for a session of this length
REFERENCE_DURATION_MINUTES = 60

# Surcharge per material level above level 1 (0.1 = 10%)
LEVEL_STEP = Decimal("0.1")

# Offline sessions cost 20% more than online ones
ONLINE_LOCATION_MULTIPLIER = Decimal("1")
OFFLINE_LOCATION_MULTIPLIER = Decimal("1.2")

FALLBACK_CATEGORY = "Default"

DEFAULT_MENTOR_FEE_PERCENTAGE = 70
DEFAULT_PLATFORM_FEE_PERCENTAGE = 30

CURRENCY = "idr"
CURRENCY_SYMBOL = "Rp"

PRICING_CATEGORIES = (
    ("session_pricing", "Session pricing"),
    ("bundle_discount", "Bundle discount"),
    ("mentor_commission", "Mentor commission"),
    ("platform_fee", "Platform fee"),
)

DISCOUNT_TYPES = (
    ("percentage", "Percentage"),
    ("fixed_amount", "Fixed amount"),
)


@dataclass(frozen=True)
class FeeSettings:
    """Default mentor/platform split used when no pricing rule is active."""

    mentor_fee_percentage: int = DEFAULT_MENTOR_FEE_PERCENTAGE
    platform_fee_percentage: int = DEFAULT_PLATFORM_FEE_PERCENTAGE


def get_fee_settings() -> FeeSettings:
    """Read the default split from Django settings, falling back to the constants above."""
    return FeeSettings(
        mentor_fee_percentage=getattr(
            settings, "PRICING_DEFAULT_MENTOR_FEE_PERCENTAGE", DEFAULT_MENTOR_FEE_PERCENTAGE
        ),
        platform_fee_percentage=getattr(
            settings, "PRICING_DEFAULT_PLATFORM_FEE_PERCENTAGE", DEFAULT_PLATFORM_FEE_PERCENTAGE
        ),
    )
