"""
Invoice numbering service.

Derived numbers have the form DDMMYYYYNNN: the invoice's creation date
followed by its 1-based ordinal among all invoices ever created, ordered by
(created_at, sequence). The ordinal comes from that stable ordering and never
from whatever order a caller happens to display invoices in.
"""

import re
from bisect import bisect_left
from collections.abc import Iterable
from datetime import datetime

from billpro.core.entities.invoice import Invoice, OrderingKey
from billpro.core.exceptions import NumberingError


def format_number(created_at: datetime, ordinal: int, width: int = 3) -> str:
    """Render a derived invoice number."""
    return f"{created_at:%d%m%Y}{ordinal:0{width}d}"


class NumberingIndex:
    """
    Cached creation ordering.

    Keys are only ever added: deleted invoices keep their slot so later
    ordinals do not shift.
    """

    def __init__(self, keys: Iterable[OrderingKey] = ()) -> None:
        self._keys: list[OrderingKey] = sorted(keys)
        self._positions: dict[str, int] = {
            key.invoice_id: position
            for position, key in enumerate(self._keys, start=1)
        }

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, invoice_id: object) -> bool:
        return invoice_id in self._positions

    def add(self, key: OrderingKey) -> int:
        """Insert a key and return its ordinal."""
        if key.invoice_id in self._positions:
            return self._positions[key.invoice_id]

        index = bisect_left(self._keys, key)
        self._keys.insert(index, key)
        for position in range(index, len(self._keys)):
            self._positions[self._keys[position].invoice_id] = position + 1
        return index + 1

    def ordinal_of(self, invoice_id: str) -> int:
        try:
            return self._positions[invoice_id]
        except KeyError:
            raise NumberingError(invoice_id) from None

    def last(self) -> OrderingKey | None:
        return self._keys[-1] if self._keys else None

    def extended(self, key: OrderingKey) -> "NumberingIndex":
        """A copy with ``key`` added; this index is left untouched."""
        index = NumberingIndex()
        index._keys = list(self._keys)
        index._positions = dict(self._positions)
        index.add(key)
        return index


class NumberingAssigner:
    """Resolves the display number of an invoice."""

    def __init__(self, placeholder_prefix: str = "INV-", ordinal_width: int = 3) -> None:
        self.placeholder_prefix = placeholder_prefix
        self.ordinal_width = ordinal_width
        self._derived_shape = re.compile(rf"\d{{8}}\d{{{ordinal_width},}}")

    def is_placeholder(self, number: str | None) -> bool:
        """Empty values and UI placeholders (``INV-...``)."""
        if number is None or not number.strip():
            return True
        return number.startswith(self.placeholder_prefix)

    def looks_derived(self, number: str) -> bool:
        """True for numbers in the DDMMYYYYNNN form this service generates."""
        return self._derived_shape.fullmatch(number.strip()) is not None

    def is_formal(self, number: str | None) -> bool:
        """True for caller-assigned numbers that must be kept verbatim.

        Placeholders are not formal, and neither is anything shaped like a
        derived number: those ordinals belong to the creation ordering.
        """
        if self.is_placeholder(number):
            return False
        return not self.looks_derived(number)  # type: ignore[arg-type]

    def derive(self, invoice: Invoice, index: NumberingIndex) -> str:
        """Derived number from the invoice's position in ``index``."""
        ordinal = index.ordinal_of(invoice.id)
        return format_number(invoice.created_at, ordinal, self.ordinal_width)

    def assign(self, invoice: Invoice, index: NumberingIndex) -> str:
        """
        Number for a new ``invoice``.

        Raises:
            NumberingError: The invoice is not in ``index`` and carries no
                formal number.
        """
        if self.is_formal(invoice.number):
            return invoice.number.strip()  # type: ignore[union-attr]
        return self.derive(invoice, index)
