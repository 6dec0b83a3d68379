import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Sequence

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Half-cent amounts always round away from zero. Every code path uses round_currency.
ROUNDING = ROUND_HALF_UP

# Largest amount accepted, anything above is sanitized to 0. Keeps quantizing to
# cents well inside the default 28-digit Decimal precision.
MAX_AMOUNT = Decimal("1e15")


def to_decimal(value) -> Decimal:
    """
    Coerce an input number to a finite, non-negative Decimal.
    None, NaN, infinities, negatives, amounts above MAX_AMOUNT and unparseable
    values become 0.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            logger.warning("Unparseable amount %r treated as 0", value)
            return ZERO
    if not result.is_finite() or result < 0:
        logger.warning("Invalid amount %r treated as 0", value)
        return ZERO
    if result > MAX_AMOUNT:
        logger.warning("Out-of-range amount %r treated as 0", value)
        return ZERO
    return result


def to_money(value) -> Decimal:
    """Sanitize then quantize an amount to cents."""
    return round_currency(to_decimal(value))


def round_currency(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUNDING)


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value(rounding=ROUNDING))


def from_cents(cents: int) -> Decimal:
    return Decimal(cents).scaleb(-2)


def reconcile_pennies(
    exact_amounts: Sequence[Decimal],
    target_total: Decimal,
    eligible: Sequence[bool] | None = None,
) -> tuple[list[Decimal], int]:
    """
    Round each amount to cents, then move the leftover cents so the rounded
    amounts sum EXACTLY to target_total (largest-remainder method).

    A positive residual adds one cent at a time to the amounts that lost the
    most in rounding; a negative residual takes cents back from the amounts
    that gained the most. Ties go to the earlier amount.
    Only positions flagged in `eligible` can be adjusted (defaults to every
    position with a non-zero amount).

    Returns:
        (reconciled amounts, signed number of cents distributed)
    """
    rounded_cents = [to_cents(a) for a in exact_amounts]
    target_cents = to_cents(target_total)
    diff = target_cents - sum(rounded_cents)
    if diff == 0 or not exact_amounts:
        return [from_cents(c) for c in rounded_cents], 0

    if eligible is None:
        eligible = [a != 0 for a in exact_amounts]
    candidates = [i for i, ok in enumerate(eligible) if ok]
    if not candidates:
        logger.warning("No eligible amounts to absorb %d cent(s)", diff)
        return [from_cents(c) for c in rounded_cents], 0

    # remainder > 0 means the amount was rounded down
    remainders = {
        i: exact_amounts[i] * 100 - rounded_cents[i]
        for i in candidates
    }
    step = 1 if diff > 0 else -1
    if step > 0:
        order = sorted(candidates, key=lambda i: -remainders[i])
    else:
        order = sorted(candidates, key=lambda i: remainders[i])

    remaining = abs(diff)
    while remaining:
        for i in order:
            if not remaining:
                break
            rounded_cents[i] += step
            remaining -= 1

    return [from_cents(c) for c in rounded_cents], diff
