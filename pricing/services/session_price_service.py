"""
Session price calculation: one session_pricing rule + session parameters -> itemized breakdown.

Rounding points are fixed and must not be merged:
- subtotal is rounded before the location multiplier is applied,
- final_price is rounded again after it,
- platform earnings are the remainder, so mentor + platform == final price.
"""
import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Mapping, Optional, Sequence, Union

from pricing import config
from pricing.services.money import as_number, percent_of, round_amount, to_decimal
from pricing.services.validation import (
    require_amount,
    require_material_levels,
    require_percentage,
    require_positive,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionParams:
    material_levels: Sequence[int]
    duration_minutes: Union[int, float]
    is_online: bool = True

    @classmethod
    def coerce(cls, params) -> "SessionParams":
        if isinstance(params, cls):
            return params
        if isinstance(params, Mapping):
            return cls(
                material_levels=params.get("material_levels", []),
                duration_minutes=params.get("duration_minutes"),
                is_online=params.get("is_online", True),
            )
        raise TypeError(f"Unsupported session params: {type(params).__name__}")


@dataclass(frozen=True)
class SessionPriceBreakdown:
    base_price: int
    level_multiplier: float
    level_bonus: int
    duration_multiplier: float
    location_multiplier: float
    location_bonus: int
    subtotal: int
    final_price: int
    mentor_share: Union[int, float]
    mentor_earnings: int
    platform_fee: Union[int, float]
    platform_earnings: int
    max_level: int
    category: str

    def as_dict(self) -> dict:
        return asdict(self)


def _split(final_price: int, mentor_share) -> tuple:
    mentor_earnings = round_amount(percent_of(final_price, mentor_share))
    return mentor_earnings, final_price - mentor_earnings


def _fallback_breakdown(params: SessionParams, fee_settings) -> SessionPriceBreakdown:
    base_price = round_amount(to_decimal(params.duration_minutes) * config.FALLBACK_RATE_PER_MINUTE)
    mentor_share = fee_settings.mentor_fee_percentage
    mentor_earnings, platform_earnings = _split(base_price, mentor_share)
    return SessionPriceBreakdown(
        base_price=base_price,
        level_multiplier=1.0,
        level_bonus=0,
        duration_multiplier=1.0,
        location_multiplier=1.0,
        location_bonus=0,
        subtotal=base_price,
        final_price=base_price,
        mentor_share=as_number(mentor_share),
        mentor_earnings=mentor_earnings,
        platform_fee=as_number(fee_settings.platform_fee_percentage),
        platform_earnings=platform_earnings,
        max_level=1,
        category=config.FALLBACK_CATEGORY,
    )


def compute_session_price(
    rule,
    params: Union[SessionParams, Mapping],
    fee_settings: Optional[config.FeeSettings] = None,
) -> SessionPriceBreakdown:
    """
    Price one session.

    `rule` is a PricingRule (or any object with base_price, mentor_share and category);
    None selects the per-minute fallback with the default fee split.
    """
    params = SessionParams.coerce(params)
    material_levels = require_material_levels(params.material_levels)
    require_positive(params.duration_minutes, "duration_minutes")

    if rule is None:
        fee_settings = fee_settings or config.get_fee_settings()
        require_percentage(fee_settings.mentor_fee_percentage, "mentor_fee_percentage")
        breakdown = _fallback_breakdown(params, fee_settings)
        logger.debug(
            "compute_session_price: no active rule, fallback duration=%s final=%s",
            params.duration_minutes,
            breakdown.final_price,
        )
        return breakdown

    base_price = to_decimal(require_amount(rule.base_price, "base_price"))
    mentor_share = require_percentage(rule.mentor_share, "mentor_share")

    max_level = max(material_levels) if material_levels else 1
    level_multiplier = 1 + (max_level - 1) * config.LEVEL_STEP
    level_bonus = round_amount(base_price * (level_multiplier - 1))

    duration_multiplier = to_decimal(params.duration_minutes) / config.REFERENCE_DURATION_MINUTES

    location_multiplier = (
        config.ONLINE_LOCATION_MULTIPLIER if params.is_online else config.OFFLINE_LOCATION_MULTIPLIER
    )
    scaled = base_price * level_multiplier * duration_multiplier
    location_bonus = round_amount(scaled * (location_multiplier - 1))

    subtotal = round_amount(scaled)
    final_price = round_amount(subtotal * location_multiplier)

    mentor_earnings, platform_earnings = _split(final_price, mentor_share)

    breakdown = SessionPriceBreakdown(
        base_price=as_number(base_price),
        level_multiplier=float(level_multiplier),
        level_bonus=level_bonus,
        duration_multiplier=float(duration_multiplier),
        location_multiplier=float(location_multiplier),
        location_bonus=location_bonus,
        subtotal=subtotal,
        final_price=final_price,
        mentor_share=as_number(mentor_share),
        mentor_earnings=mentor_earnings,
        platform_fee=as_number(Decimal(100) - to_decimal(mentor_share)),
        platform_earnings=platform_earnings,
        max_level=max_level,
        category=getattr(rule, "category", "session_pricing"),
    )
    logger.debug(
        "compute_session_price: rule=%s level=%s duration=%s online=%s final=%s",
        getattr(rule, "rule_name", None),
        max_level,
        params.duration_minutes,
        params.is_online,
        final_price,
    )
    return breakdown
