"""
Bundle configuration: thresholds used by the bundle catalog helpers.

Amounts are integer currency units (IDR).
"""

BUNDLE_TYPES = (
    ("monthly", "Paket Bulanan"),
    ("quarterly", "Paket Triwulan"),
    ("session_pack", "Paket Sesi"),
    ("custom", "Paket Kustom"),
)

SUBSCRIPTION_STATUSES = (
    ("active", "Active"),
    ("expired", "Expired"),
    ("cancelled", "Cancelled"),
    ("suspended", "Suspended"),
)

# "Good value" badge: at least this discount and at most this price per session
GOOD_VALUE_MIN_DISCOUNT_PERCENTAGE = 15
GOOD_VALUE_MAX_PRICE_PER_SESSION = 200000

RECOMMENDATION_LIMIT = 3
# Recommended bundles must hold between 80% and 150% of the sessions asked for
RECOMMENDATION_MIN_SESSION_RATIO = 0.8
RECOMMENDATION_MAX_SESSION_RATIO = 1.5

MIN_NAME_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10

# Stripe expects IDR amounts in hundredths even though rupiah has no minor unit in practice
STRIPE_AMOUNT_MULTIPLIER = 100
