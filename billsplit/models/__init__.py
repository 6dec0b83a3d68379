from billsplit.models.bill import (
    AssignedLine, BillTotals, Item, ItemShare, PennyMethod, PennyReconciliation,
    Person, PersonTotal, SplitMode,
)

__all__ = [
    "AssignedLine", "BillTotals", "Item", "ItemShare", "PennyMethod",
    "PennyReconciliation", "Person", "PersonTotal", "SplitMode",
]
