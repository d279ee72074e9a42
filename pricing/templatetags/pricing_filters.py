from django import template

from pricing.services.money import format_currency

register = template.Library()


@register.filter
def rupiah(amount):
    """Render an integer amount as "Rp 150.000". Empty values render as an empty string."""
    if amount is None or amount == "":
        return ""
    try:
        return format_currency(amount)
    except (ValueError, ArithmeticError):
        return amount
