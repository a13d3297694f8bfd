"""Tests for mapping persisted orders back into drafts."""

from decimal import Decimal

from repair_order.config import WorkflowSettings
from repair_order.hydration import draft_from_order
from repair_order.models import DraftStatus, PartLine, RoutingMode


def saved_order(**overrides):
    order = {
        "_id": "o-9",
        "customerId": "c-1",
        "device": {
            "typeId": "phone",
            "brandId": "apple",
            "modelId": "iphone14",
            "names": {"deviceType": "Phone", "brand": "Apple", "model": "iPhone 14"},
            "serialNumber": "SN-1",
        },
        "loanedDevice": None,
        "isLoanedDeviceGiven": False,
        "items": [{"partId": "A", "quantity": 1}, {"partId": "B", "quantity": 2}],
        "payment": {"method": "cash", "depositAmount": 20},
        "isCentralService": True,
        "branchServiceFee": 25,
        "fees": {"branchServiceFee": 25, "centralServiceFee": 30, "branchProfit": 40},
        "description": "cracked",
    }
    order.update(overrides)
    return order


class TestDraftFromOrder:
    """Tests for draft_from_order."""

    def test_current_shape(self) -> None:
        """Orders written by this package round into the same draft fields."""
        draft = draft_from_order(saved_order())
        assert draft.order_id == "o-9"
        assert draft.customer.id == "c-1"
        assert (draft.device.type_id, draft.device.brand_id, draft.device.model_id) == ("phone", "apple", "iphone14")
        assert draft.device.model_name == "iPhone 14"
        assert draft.lines == [PartLine("A", 1), PartLine("B", 2)]
        assert draft.routing_mode is RoutingMode.CENTRAL
        assert (draft.fees.branch_service_fee, draft.fees.central_service_fee, draft.fees.branch_profit) == (25, 30, 40)
        assert draft.deposit_amount == 20
        assert draft.serial_number == "SN-1"
        assert draft.description == "cracked"
        assert draft.status == DraftStatus.DRAFT
        assert draft.is_loaned_device_given is False

    def test_legacy_fields(self) -> None:
        """Older field names are understood."""
        order = {
            "_id": {"$oid": "o-1"},
            "customer": {"_id": "c-2", "name": "Hans Müller", "phone": "+49 170"},
            "device": {"deviceTypeId": "phone", "brand": {"_id": "apple"}, "model": "iphone13"},
            "products": [{"productId": {"_id": "D"}, "quantity": "3"}],
            "isCentral": "no",
            "branchService": {"branchServiceFee": 35, "branchPartProfit": 45},
            "centralService": {"serviceFee": 50},
            "payment": {"paidAmount": 15},
        }
        draft = draft_from_order(order)
        assert draft.order_id == "o-1"
        assert draft.customer.name == "Hans Müller"
        assert (draft.device.type_id, draft.device.brand_id, draft.device.model_id) == ("phone", "apple", "iphone13")
        assert draft.lines == [PartLine("D", 3)]
        assert draft.routing_mode is RoutingMode.BRANCH
        assert (draft.fees.branch_service_fee, draft.fees.central_service_fee, draft.fees.branch_profit) == (35, 50, 45)
        assert draft.deposit_amount == 15

    def test_deposit_fallbacks(self) -> None:
        """Top-level deposit is used when payment carries none."""
        draft = draft_from_order(saved_order(payment={"method": "cash"}, depositAmount=10))
        assert draft.deposit_amount == 10

    def test_fractional_deposit_kept(self) -> None:
        """A fractional stored deposit is not truncated."""
        draft = draft_from_order(saved_order(payment={"depositAmount": 12.5}))
        assert draft.deposit_amount == Decimal("12.5")

    def test_contact_block_with_customer_reference(self) -> None:
        """The id comes from customerId; the contact block only fills in details."""
        contact = {"name": "Ann", "phone": "0151"}
        populated = draft_from_order(saved_order(customer=contact, customerId={"_id": "c-1", "email": "ann@example.com"}))
        assert populated.customer.id == "c-1"
        assert (populated.customer.name, populated.customer.phone) == ("Ann", "0151")
        assert populated.customer.email == "ann@example.com"

        bare = draft_from_order(saved_order(customer=contact, customerId="c-1"))
        assert bare.customer.id == "c-1"
        assert bare.customer.name == "Ann"

    def test_flat_central_fee_is_a_ladder_value(self) -> None:
        """The flat centralServiceFee field is read as the chosen fee tier."""
        draft = draft_from_order(saved_order(fees=None, centralServiceFee=45))
        assert draft.fees.central_service_fee == 45

    def test_off_ladder_fee_falls_back(self) -> None:
        """A fee outside the ladder is replaced by the configured default."""
        order = saved_order(
            branchServiceFee=None, fees={"branchServiceFee": 33, "centralServiceFee": 250, "branchProfit": 40}
        )
        draft = draft_from_order(order, WorkflowSettings(default_fee=30))
        assert draft.fees.branch_service_fee == 30
        assert draft.fees.central_service_fee == 30
        assert draft.fees.branch_profit == 40

    def test_loaned_device(self) -> None:
        """A stored loaned device is restored with its names."""
        draft = draft_from_order(
            saved_order(
                isLoanedDeviceGiven=True,
                loanedDevice={"typeId": "tablet", "brandId": "apple", "modelId": "ipad",
                              "names": {"deviceType": "Tablet", "brand": "Apple", "model": "iPad"}},
            )
        )
        assert draft.is_loaned_device_given is True
        assert draft.loaned_device.names() == {"deviceType": "Tablet", "brand": "Apple", "model": "iPad"}

    def test_wrapped_reply(self) -> None:
        """A reply wrapping the order is unwrapped."""
        draft = draft_from_order({"success": True, "order": saved_order()})
        assert draft.order_id == "o-9"

    def test_missing_routing_and_customer(self) -> None:
        """Absent fields stay unset."""
        draft = draft_from_order({"_id": "o-3"})
        assert draft.customer is None
        assert draft.routing_mode is None
        assert draft.lines == []
        assert draft.deposit_amount == 0
