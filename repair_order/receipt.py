"""Plain-text receipts for saved orders."""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import structlog

from .helpers import extract_amount
from .models import SavedOrder

logger = structlog.get_logger()


@dataclass(frozen=True)
class Receipt:
    """A formatted receipt for one saved order."""

    order_id: Optional[str]
    order_number: str
    text: str


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def branch_address_lines(branch: Optional[Mapping[str, Any]]) -> list[str]:
    """Branch header lines: name, street, postal code and city, state, country, phone."""
    if not branch:
        return []
    lines = [_text(branch.get("name"))]

    address = branch.get("address")
    if isinstance(address, str):
        lines.append(address.strip())
    elif isinstance(address, Mapping):
        lines.append(_text(address.get("street")))
        lines.append(" ".join(p for p in (_text(address.get("postalCode")), _text(address.get("city"))) if p))
        lines.append(_text(address.get("state")))
        lines.append(_text(address.get("country")))

    if branch.get("phone"):
        lines.append(f"Telefon: {branch['phone']}")
    return [line for line in lines if line]


def device_path(names: Optional[Mapping[str, Any]]) -> str:
    """``type / brand / model`` from a names block, or ``-`` when all are blank."""
    names = names or {}
    parts = [_text(names.get(key)) for key in ("deviceType", "brand", "model")]
    parts = [p for p in parts if p]
    return " / ".join(parts) if parts else "-"


def _money(value: Any) -> str:
    amount = value if isinstance(value, Decimal) else extract_amount(value)
    return f"{amount:.2f} €"


def format_receipt(saved: SavedOrder) -> str:
    """Format a human-readable receipt."""
    order = saved.order
    payment = order.get("payment") or {}
    lines = []

    lines.append("=" * 40)
    lines.extend(branch_address_lines(order.get("branchSnapshot")))
    lines.append("=" * 40)
    lines.append(f"Order: {saved.reference or '-'}")
    if saved.barcode:
        lines.append(f"Barcode: {saved.barcode}")
    if saved.created_at:
        lines.append(f"Date: {saved.created_at[:10]}")
    if saved.customer is not None:
        lines.append(f"Customer: {saved.customer.name or saved.customer.id}")
        if saved.customer.phone:
            lines.append(f"Phone: {saved.customer.phone}")
    lines.append("-" * 40)

    device = order.get("device") or {}
    lines.append(f"Device: {device_path(device.get('names'))}")
    if device.get("serialNumber"):
        lines.append(f"Serial: {device['serialNumber']}")

    for item in order.get("items") or []:
        lines.append(f"• {item.get('name') or item.get('partId')} x{item.get('quantity', 1)}")

    lines.append("-" * 40)
    lines.append(f"TOTAL:     {_money(saved.pricing.customer_total)}")
    lines.append(f"Paid:      {_money(payment.get('depositAmount', 0))}")
    lines.append(f"Remaining: {_money(saved.pricing.remaining_amount)}")
    lines.append(f"Payment: {payment.get('method', '-')}")

    if order.get("isLoanedDeviceGiven") and order.get("loanedDevice"):
        lines.append("-" * 40)
        lines.append(f"Loaned device: {device_path(order['loanedDevice'].get('names'))}")

    lines.append("=" * 40)
    return "\n".join(lines)


class ReceiptProjector:
    """Projects saved orders into receipts."""

    def __init__(self, log=None):
        self.name = "receipt"
        self._log = log or logger

    def project(self, saved: SavedOrder) -> Receipt:
        receipt = Receipt(order_id=saved.id, order_number=saved.reference, text=format_receipt(saved))
        self._log.info("receipt_generated", order_id=saved.id, order_number=saved.reference)
        return receipt
