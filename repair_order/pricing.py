"""Pricing of an order draft.

Two mutually exclusive customer-total formulas, selected by routing mode:

    central: parts total + per-line central service fees + branch service fee
    branch:  parts total + branch profit + branch service fee

The amount owed to the central facility (parts cost plus its service fees)
is computed in both modes so either side can be audited. The central parts
cost is the same figure as the parts total. The remaining balance is the
customer total minus the deposit and is not clamped at zero.
"""

from decimal import Decimal
from typing import Optional, Protocol, Union

from .models import Fees, OrderDraft, PricingSnapshot, RoutingMode


class LineTotals(Protocol):
    def parts_total(self) -> Decimal: ...

    def service_fee_total(self) -> Decimal: ...


def compute_pricing(
    lines: LineTotals,
    routing_mode: Optional[RoutingMode],
    fees: Fees,
    deposit_amount: Union[int, Decimal],
) -> PricingSnapshot:
    """Derive every total from scratch. Pure: reads its inputs, mutates nothing.

    A draft with no routing mode chosen yet is priced with the branch formula.
    """
    parts_total = lines.parts_total()
    central_parts_cost = parts_total
    central_service_fee_total = lines.service_fee_total()
    total_central_payment = central_parts_cost + central_service_fee_total

    if routing_mode == RoutingMode.CENTRAL:
        customer_total = parts_total + central_service_fee_total + fees.branch_service_fee
    else:
        customer_total = parts_total + fees.branch_profit + fees.branch_service_fee

    return PricingSnapshot(
        parts_total=parts_total,
        central_parts_cost=central_parts_cost,
        central_service_fee_total=central_service_fee_total,
        total_central_payment=total_central_payment,
        customer_total=customer_total,
        remaining_amount=customer_total - deposit_amount,
    )


def price_draft(draft: OrderDraft, lines: LineTotals) -> PricingSnapshot:
    return compute_pricing(lines, draft.routing_mode, draft.fees, draft.deposit_amount)
