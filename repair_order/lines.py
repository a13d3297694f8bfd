"""Ordered part lines of a draft and the subtotals derived from them."""

from decimal import Decimal
from typing import Optional

import structlog

from .catalog import PartCatalogView
from .helpers import ZERO
from .models import PartLine, ResolvedLine
from .validation import require_index, require_positive


class PartLineRegistry:
    """Mutates a draft's line list and resolves it against the loaded parts.

    Lines are resolved at read time, never cached: a line whose part is not
    in the view contributes zero price, zero fee and a blank name.
    """

    def __init__(self, lines: list[PartLine], view: PartCatalogView, log=None):
        self._lines = lines
        self._view = view
        self._log = (log or structlog.get_logger()).bind(component="lines")

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[PartLine]:
        return list(self._lines)

    def add_line(self, part_id: Optional[str] = None, quantity: int = 1) -> int:
        """Append a line (empty unless given a part) and return its index."""
        require_positive(quantity, "Quantity must be at least 1")
        self._lines.append(PartLine(part_id=part_id or None, quantity=quantity))
        index = len(self._lines) - 1
        self._log.debug("line_added", index=index, part_id=part_id)
        return index

    def remove_line(self, index: int) -> PartLine:
        require_index(index, len(self._lines), f"No part line at index {index}")
        line = self._lines.pop(index)
        self._log.debug("line_removed", index=index, part_id=line.part_id)
        return line

    def set_part_id(self, index: int, part_id: Optional[str]) -> None:
        require_index(index, len(self._lines), f"No part line at index {index}")
        self._lines[index].part_id = part_id or None
        self._log.debug("line_part_set", index=index, part_id=part_id)

    def set_quantity(self, index: int, quantity: int) -> None:
        require_index(index, len(self._lines), f"No part line at index {index}")
        require_positive(quantity, "Quantity must be at least 1")
        self._lines[index].quantity = quantity
        self._log.debug("line_quantity_set", index=index, quantity=quantity)

    def resolve(self, index: int) -> ResolvedLine:
        require_index(index, len(self._lines), f"No part line at index {index}")
        return self._resolve(self._lines[index])

    def resolved_lines(self) -> list[ResolvedLine]:
        return [self._resolve(line) for line in self._lines]

    def selected_lines(self) -> list[ResolvedLine]:
        """Resolved lines that reference a part (empty rows are skipped)."""
        return [r for r in self.resolved_lines() if r.part_id]

    def parts_total(self) -> Decimal:
        """Sum of unit price times quantity over every line."""
        return sum((r.line_total for r in self.resolved_lines()), ZERO)

    def service_fee_total(self) -> Decimal:
        """Sum of unit service fees, charged once per line whatever the quantity."""
        return sum((r.unit_service_fee for r in self.resolved_lines()), ZERO)

    def _resolve(self, line: PartLine) -> ResolvedLine:
        part = self._view.find_part(line.part_id)
        if part is None:
            return ResolvedLine(
                part_id=line.part_id,
                quantity=line.quantity,
                name="",
                unit_price=ZERO,
                unit_service_fee=ZERO,
                resolved=False,
            )
        return ResolvedLine(
            part_id=line.part_id,
            quantity=line.quantity,
            name=self._view.part_name(part),
            unit_price=part.unit_price,
            unit_service_fee=part.unit_service_fee,
            resolved=True,
        )
