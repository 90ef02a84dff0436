"""Business-level fees, minimum charge and deposit for a quote.

The order of operations is fixed so the same booking always produces the
same quote:

1. subtotal (services + travel)
2. GST on the subtotal
3. platform fee on the subtotal
4. payment-processing fee on the subtotal
5. total = rounded subtotal + each rounded fee line
6. minimum-charge floor on the total
7. deposit (fixed, or a percentage of the floored total)
8. remaining balance

Fees are always taken on the subtotal, never on the floored total. The total
is summed from the cent-rounded lines so the breakdown adds up to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from app.schemas.pricing_config import Business, DepositType

_CENT = Decimal("0.01")
_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BusinessFees:
    subtotal: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    gst_included_in_prices: bool
    platform_fee_percentage: Decimal
    platform_fee_amount: Decimal
    payment_processing_fee_percentage: Decimal
    payment_processing_fee_amount: Decimal

    @property
    def total(self) -> Decimal:
        # GST already inside the prices is reported, not charged twice
        gst = _ZERO if self.gst_included_in_prices else self.gst_amount
        return (
            to_cents(self.subtotal)
            + to_cents(gst)
            + to_cents(self.platform_fee_amount)
            + to_cents(self.payment_processing_fee_amount)
        )


def calculate_gst(subtotal: Decimal, business: Business) -> Decimal:
    if not business.charges_gst or not business.gst_rate:
        return _ZERO
    rate = business.gst_rate / _HUNDRED
    if business.prices_include_gst:
        return subtotal - subtotal / (1 + rate)
    return subtotal * rate


def calculate_business_fees(subtotal: Decimal, business: Business) -> BusinessFees:
    """Return GST, platform and processing fees computed on ``subtotal``."""
    return BusinessFees(
        subtotal=subtotal,
        gst_rate=business.gst_rate if business.charges_gst else _ZERO,
        gst_amount=calculate_gst(subtotal, business),
        gst_included_in_prices=bool(business.charges_gst and business.prices_include_gst),
        platform_fee_percentage=business.platform_fee_percentage,
        platform_fee_amount=subtotal * business.platform_fee_percentage / _HUNDRED,
        payment_processing_fee_percentage=business.payment_processing_fee_percentage,
        payment_processing_fee_amount=subtotal * business.payment_processing_fee_percentage / _HUNDRED,
    )


def apply_minimum_charge(amount: Decimal, minimum_charge: Decimal) -> Tuple[Decimal, bool]:
    """Return ``(final_amount, minimum_charge_applied)``."""
    if amount < minimum_charge:
        return minimum_charge, True
    return amount, False


def calculate_deposit(total_amount: Decimal, business: Business) -> Decimal:
    if not business.charges_deposit:
        return _ZERO
    if business.deposit_type is DepositType.FIXED:
        return business.deposit_fixed_amount or _ZERO
    return total_amount * (business.deposit_percentage or _ZERO) / _HUNDRED


def calculate_remaining_balance(total_amount: Decimal, deposit_amount: Decimal, deposit_paid: bool) -> Decimal:
    if not deposit_paid:
        return total_amount
    return total_amount - deposit_amount
