from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from billsplit.models.bill import (
    BillTotals, Item, ItemShare, PennyMethod, PennyReconciliation, Person, PersonTotal, SplitMode,
)
from billsplit.utils.currency_utils import MAX_AMOUNT, round_currency

# Bill figures can add up many MAX_AMOUNT prices and still fit in Decimal precision.
MAX_TOTAL = Decimal("1e20")

# Amounts entering the engine must be finite, non-negative and in range.
NonNegativeAmount = Annotated[Decimal, Field(ge=0, le=MAX_AMOUNT, allow_inf_nan=False)]
Weight = Annotated[Decimal, Field(ge=0, le=100, allow_inf_nan=False)]
# Rendered with exactly two decimals, e.g. "3.30"
Money = Annotated[
    Decimal,
    Field(ge=-MAX_TOTAL, le=MAX_TOTAL, allow_inf_nan=False),
    PlainSerializer(lambda v: f"{round_currency(v):.2f}", return_type=str),
]


class ItemInput(BaseModel):
    id: str
    label: str = "Item"
    price: NonNegativeAmount
    quantity: NonNegativeAmount = Decimal("1")
    emoji: str | None = None

    def to_model(self) -> Item:
        return Item(id=self.id, label=self.label, price=self.price, quantity=self.quantity, emoji=self.emoji)


class PersonInput(BaseModel):
    id: str
    name: str
    is_paid: bool = False

    def to_model(self) -> Person:
        return Person(id=self.id, name=self.name, is_paid=self.is_paid)


class ItemShareInput(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    item_id: str
    person_id: str
    weight: Weight = Decimal("1")

    def to_model(self) -> ItemShare:
        return ItemShare(item_id=self.item_id, person_id=self.person_id, weight=self.weight)


class AssignedMapRequest(BaseModel):
    items: list[ItemInput] = []
    people: list[PersonInput] | None = None
    shares: list[ItemShareInput] = []


class ComputeTotalsRequest(BaseModel):
    items: list[ItemInput] = []
    people: list[PersonInput] = []
    shares: list[ItemShareInput] = []
    tax: NonNegativeAmount = Decimal("0")
    tip: NonNegativeAmount = Decimal("0")
    discount: NonNegativeAmount = Decimal("0")
    service_fee: NonNegativeAmount = Decimal("0")
    # None falls back to the configured defaults
    tax_mode: SplitMode | None = None
    tip_mode: SplitMode | None = None
    include_zero_people: bool | None = None


class AssignedLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    item_id: str
    label: str
    emoji: str | None = None
    price: Money
    quantity: Decimal
    weight: Decimal
    share_amount: Money


class PersonTotalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    person_id: str
    name: str
    subtotal: Money
    discount_share: Money = Decimal("0")
    service_fee_share: Money = Decimal("0")
    tax_share: Money
    tip_share: Money
    total: Money
    items: list[AssignedLineResponse] = []


class PennyReconciliationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    distributed: int
    method: PennyMethod


class BillTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    subtotal: Money
    discount: Money = Decimal("0")
    service_fee: Money = Decimal("0")
    tax: Money
    tip: Money
    grand_total: Money
    unassigned: Money = Decimal("0")
    person_totals: list[PersonTotalResponse] = []
    penny_reconciliation: PennyReconciliationResponse

    def to_model(self) -> BillTotals:
        return BillTotals(
            subtotal=self.subtotal,
            discount=self.discount,
            service_fee=self.service_fee,
            tax=self.tax,
            tip=self.tip,
            grand_total=self.grand_total,
            unassigned=self.unassigned,
            person_totals=[
                PersonTotal(
                    person_id=p.person_id,
                    name=p.name,
                    subtotal=p.subtotal,
                    discount_share=p.discount_share,
                    service_fee_share=p.service_fee_share,
                    tax_share=p.tax_share,
                    tip_share=p.tip_share,
                    total=p.total,
                )
                for p in self.person_totals
            ],
            penny_reconciliation=PennyReconciliation(
                distributed=self.penny_reconciliation.distributed,
                method=self.penny_reconciliation.method,
            ),
        )


class TotalsValidationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    valid: bool
    error: str | None = None
