"""Tests for the pricing formulas."""

from decimal import Decimal

import pytest

from repair_order.catalog import PartCatalogView
from repair_order.lines import PartLineRegistry
from repair_order.models import Fees, OrderDraft, RoutingMode
from repair_order.pricing import compute_pricing, price_draft

from .fixtures import PARTS


@pytest.fixture
def lines() -> PartLineRegistry:
    """A(50, fee 10) x1 and B(20, fee 0) x2."""
    view = PartCatalogView()
    view.merge_parts(PARTS["iphone14"], model_id="iphone14")
    registry = PartLineRegistry([], view)
    registry.add_line("A", 1)
    registry.add_line("B", 2)
    return registry


class TestComputePricing:
    """Tests for compute_pricing."""

    def test_mode_independent_totals(self, lines) -> None:
        """Parts, central fees and central payment do not depend on mode."""
        for mode in (RoutingMode.CENTRAL, RoutingMode.BRANCH, None):
            snapshot = compute_pricing(lines, mode, Fees(), 0)
            assert snapshot.parts_total == Decimal("90")
            assert snapshot.central_service_fee_total == Decimal("10")
            assert snapshot.total_central_payment == Decimal("100")

    def test_central_parts_cost_equals_parts_total(self, lines) -> None:
        """Central parts cost is the parts total."""
        snapshot = compute_pricing(lines, RoutingMode.CENTRAL, Fees(), 0)
        assert snapshot.central_parts_cost == snapshot.parts_total

    def test_central_formula(self, lines) -> None:
        """Central: parts + central fees + branch service fee."""
        fees = Fees(branch_service_fee=25)
        snapshot = compute_pricing(lines, RoutingMode.CENTRAL, fees, 20)
        assert snapshot.customer_total == Decimal("125")
        assert snapshot.remaining_amount == Decimal("105")

    def test_branch_formula(self, lines) -> None:
        """Branch: parts + branch profit + branch service fee."""
        fees = Fees(branch_service_fee=25, branch_profit=20)
        snapshot = compute_pricing(lines, RoutingMode.BRANCH, fees, 0)
        assert snapshot.customer_total == Decimal("135")
        assert snapshot.remaining_amount == Decimal("135")

    def test_unset_mode_uses_branch_formula(self, lines) -> None:
        """Without a routing mode the branch formula applies."""
        fees = Fees(branch_service_fee=30, branch_profit=40)
        snapshot = compute_pricing(lines, None, fees, 0)
        assert snapshot.customer_total == Decimal("160")

    def test_remaining_not_clamped(self) -> None:
        """A deposit larger than the total leaves a negative balance."""
        view = PartCatalogView()
        view.merge_parts([{"_id": "X", "price": 60, "serviceFee": 20}])
        registry = PartLineRegistry([], view)
        registry.add_line("X")
        snapshot = compute_pricing(registry, RoutingMode.CENTRAL, Fees(branch_service_fee=20), 150)
        assert snapshot.customer_total == Decimal("100")
        assert snapshot.remaining_amount == Decimal("-50")

    @pytest.mark.parametrize("deposit", [0, 10, 55, 100])
    def test_remaining_identity(self, lines, deposit) -> None:
        """Remaining is always total minus deposit."""
        for mode in (RoutingMode.CENTRAL, RoutingMode.BRANCH):
            snapshot = compute_pricing(lines, mode, Fees(35, 40, 45), deposit)
            assert snapshot.remaining_amount == snapshot.customer_total - deposit

    def test_does_not_touch_lines(self, lines) -> None:
        """Pricing reads lines without changing them."""
        before = lines.lines
        compute_pricing(lines, RoutingMode.CENTRAL, Fees(), 0)
        compute_pricing(lines, RoutingMode.BRANCH, Fees(), 0)
        assert lines.lines == before


class TestPriceDraft:
    """Tests for price_draft."""

    def test_reads_draft_fields(self, lines) -> None:
        """Mode, fees and deposit come from the draft."""
        draft = OrderDraft(routing_mode=RoutingMode.CENTRAL, fees=Fees(branch_service_fee=25), deposit_amount=20)
        snapshot = price_draft(draft, lines)
        assert snapshot.customer_total == Decimal("125")
        assert snapshot.remaining_amount == Decimal("105")
