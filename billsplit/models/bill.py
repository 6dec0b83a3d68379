import enum
from dataclasses import dataclass, field
from decimal import Decimal


class SplitMode(str, enum.Enum):
    proportional = "proportional"
    even = "even"


class PennyMethod(str, enum.Enum):
    none = "none"
    distribute_largest = "distribute_largest"
    remove_largest = "remove_largest"


@dataclass(frozen=True)
class Item:
    id: str
    label: str
    price: Decimal
    quantity: Decimal = Decimal("1")
    emoji: str | None = None


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    is_paid: bool = False


@dataclass(frozen=True)
class ItemShare:
    item_id: str
    person_id: str
    weight: Decimal = Decimal("1")


@dataclass(frozen=True)
class AssignedLine:
    """One item as seen from one person. share_amount is exact (unrounded)."""
    item_id: str
    label: str
    price: Decimal
    quantity: Decimal
    weight: Decimal
    fraction: Decimal
    share_amount: Decimal
    emoji: str | None = None


@dataclass(frozen=True)
class PersonTotal:
    person_id: str
    name: str
    subtotal: Decimal
    tax_share: Decimal
    tip_share: Decimal
    total: Decimal
    discount_share: Decimal = Decimal("0.00")
    service_fee_share: Decimal = Decimal("0.00")
    items: list[AssignedLine] = field(default_factory=list)


@dataclass(frozen=True)
class PennyReconciliation:
    distributed: int = 0
    method: PennyMethod = PennyMethod.none


@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    grand_total: Decimal
    person_totals: list[PersonTotal] = field(default_factory=list)
    penny_reconciliation: PennyReconciliation = field(default_factory=PennyReconciliation)
    discount: Decimal = Decimal("0.00")
    service_fee: Decimal = Decimal("0.00")
    # grand_total minus everything allocated to people; non-zero while items are unassigned
    unassigned: Decimal = Decimal("0.00")

    def person(self, person_id: str) -> PersonTotal | None:
        return next((p for p in self.person_totals if p.person_id == person_id), None)

    def total_for(self, person_id: str) -> Decimal:
        found = self.person(person_id)
        return found.total if found else Decimal("0.00")
