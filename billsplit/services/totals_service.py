import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from billsplit.models.bill import (
    AssignedLine, BillTotals, Item, ItemShare, PennyMethod, PennyReconciliation,
    Person, PersonTotal, SplitMode,
)
from billsplit.utils.currency_utils import (
    ZERO, reconcile_pennies, round_currency, to_cents, to_decimal, to_money,
)

logger = logging.getLogger(__name__)


def derive_assigned_map(
    items: Sequence[Item],
    shares: Iterable[ItemShare],
    people: Sequence[Person] | None = None,
) -> dict[str, list[AssignedLine]]:
    """
    Per-person list of the items they take part in, with their exact dollar
    portion of each item (price * weight / total weight on that item).
    Shares pointing at unknown items (or unknown people, when `people` is
    given) are ignored. Items whose weights sum to zero are skipped.
    Lines are ordered by item order.
    """
    items_by_id = {item.id: item for item in items}
    known_people = {p.id for p in people} if people is not None else None

    weights_by_item: dict[str, list[tuple[str, Decimal]]] = defaultdict(list)
    orphaned = 0
    for share in shares:
        if share.item_id not in items_by_id or (
            known_people is not None and share.person_id not in known_people
        ):
            orphaned += 1
            continue
        weights_by_item[share.item_id].append((share.person_id, to_decimal(share.weight)))
    if orphaned:
        logger.warning("Ignored %d share(s) referencing missing items or people", orphaned)

    assigned: dict[str, list[AssignedLine]] = defaultdict(list)
    for item in items:
        entries = weights_by_item.get(item.id)
        if not entries:
            continue
        total_weight = sum((w for _, w in entries), ZERO)
        if total_weight == 0:
            continue
        price = to_money(item.price)
        for person_id, weight in entries:
            fraction = weight / total_weight
            assigned[person_id].append(AssignedLine(
                item_id=item.id,
                label=item.label,
                price=price,
                quantity=to_decimal(item.quantity),
                weight=weight,
                fraction=fraction,
                share_amount=price * fraction,
                emoji=item.emoji,
            ))
    return dict(assigned)


def _split(
    amount: Decimal,
    subtotals: list[Decimal],
    bill_subtotal: Decimal,
    mode: SplitMode,
    include_zero_people: bool = True,
) -> list[Decimal]:
    """Exact (unrounded) share of a bill-level amount for each person."""
    if mode == SplitMode.even:
        eligible = [include_zero_people or s > 0 for s in subtotals]
        n = sum(eligible)
        if n == 0:
            return [ZERO] * len(subtotals)
        return [amount / n if ok else ZERO for ok in eligible]

    if bill_subtotal == 0:
        return [ZERO] * len(subtotals)
    return [amount * s / bill_subtotal for s in subtotals]


def compute_totals(
    items: Sequence[Item],
    shares: Iterable[ItemShare],
    people: Sequence[Person],
    tax=0,
    tip=0,
    tax_mode: SplitMode = SplitMode.proportional,
    tip_mode: SplitMode = SplitMode.proportional,
    include_zero_people: bool = True,
    *,
    discount=0,
    service_fee=0,
) -> BillTotals:
    """
    Split a bill between people.

    Each person's item subtotal comes from their weighted shares of each item.
    Tax and tip are split proportionally to item subtotals or evenly; discount
    and service fee are always proportional. Every component is rounded to
    cents and reconciled with the largest-remainder method so that the
    person totals add up to grand_total exactly once every item is assigned.

    Invalid numbers (negative, NaN, infinite) are treated as 0. Never raises
    for missing references or empty inputs.
    """
    tax_mode = SplitMode(tax_mode)
    tip_mode = SplitMode(tip_mode)

    subtotal = sum((to_money(item.price) for item in items), ZERO)
    tax = to_money(tax)
    tip = to_money(tip)
    service_fee = to_money(service_fee)
    discount = min(to_money(discount), subtotal)
    grand_total = subtotal - discount + service_fee + tax + tip

    assigned = derive_assigned_map(items, shares, people)
    lines = [assigned.get(p.id, []) for p in people]
    exact_subtotals = [sum((line.share_amount for line in person_lines), ZERO) for person_lines in lines]

    exact = {
        "subtotal": exact_subtotals,
        "discount": _split(discount, exact_subtotals, subtotal, SplitMode.proportional),
        "service_fee": _split(service_fee, exact_subtotals, subtotal, SplitMode.proportional),
        "tax": _split(tax, exact_subtotals, subtotal, tax_mode, include_zero_people),
        "tip": _split(tip, exact_subtotals, subtotal, tip_mode, include_zero_people),
    }

    reconciled: dict[str, list[Decimal]] = {}
    distributed = 0
    for component, amounts in exact.items():
        target = round_currency(sum(amounts, ZERO))
        reconciled[component], moved = reconcile_pennies(amounts, target)
        distributed += moved

    person_totals = []
    for i, person in enumerate(people):
        sub = reconciled["subtotal"][i]
        disc = reconciled["discount"][i]
        fee = reconciled["service_fee"][i]
        tax_share = reconciled["tax"][i]
        tip_share = reconciled["tip"][i]
        person_totals.append(PersonTotal(
            person_id=person.id,
            name=person.name,
            subtotal=sub,
            discount_share=disc,
            service_fee_share=fee,
            tax_share=tax_share,
            tip_share=tip_share,
            total=sub - disc + fee + tax_share + tip_share,
            items=lines[i],
        ))

    if distributed > 0:
        method = PennyMethod.distribute_largest
    elif distributed < 0:
        method = PennyMethod.remove_largest
    else:
        method = PennyMethod.none

    allocated = sum((p.total for p in person_totals), ZERO)
    logger.debug(
        "Computed totals: %d item(s), %d person(s), grand_total=%s, pennies=%d",
        len(items), len(people), grand_total, distributed,
    )
    return BillTotals(
        subtotal=subtotal,
        discount=discount,
        service_fee=service_fee,
        tax=tax,
        tip=tip,
        grand_total=grand_total,
        person_totals=person_totals,
        penny_reconciliation=PennyReconciliation(distributed=distributed, method=method),
        unassigned=grand_total - allocated,
    )


@dataclass(frozen=True)
class TotalsValidation:
    valid: bool
    error: str | None = None


def validate_bill_totals(totals: BillTotals) -> TotalsValidation:
    """Check a BillTotals for whole cents and internal consistency."""
    figures = {
        "subtotal": totals.subtotal,
        "discount": totals.discount,
        "service_fee": totals.service_fee,
        "tax": totals.tax,
        "tip": totals.tip,
        "grand_total": totals.grand_total,
    }
    for p in totals.person_totals:
        for name in ("subtotal", "discount_share", "service_fee_share", "tax_share", "tip_share", "total"):
            figures[f"{p.person_id}.{name}"] = getattr(p, name)

    for name, value in figures.items():
        if round_currency(value) != value:
            return TotalsValidation(False, f"{name} is not a whole number of cents: {value}")

    expected_grand = (
        totals.subtotal - totals.discount + totals.service_fee + totals.tax + totals.tip
    )
    if expected_grand != totals.grand_total:
        return TotalsValidation(
            False, f"grand_total {totals.grand_total} does not match its components ({expected_grand})"
        )

    for p in totals.person_totals:
        expected = p.subtotal - p.discount_share + p.service_fee_share + p.tax_share + p.tip_share
        if expected != p.total:
            return TotalsValidation(
                False, f"total for {p.person_id} is {p.total}, components add up to {expected}"
            )

    allocated_cents = sum(to_cents(p.total) for p in totals.person_totals)
    if allocated_cents + to_cents(totals.unassigned) != to_cents(totals.grand_total):
        return TotalsValidation(
            False,
            f"person totals ({allocated_cents / 100:.2f}) plus unassigned ({totals.unassigned}) "
            f"do not add up to grand_total ({totals.grand_total})",
        )
    return TotalsValidation(True)
