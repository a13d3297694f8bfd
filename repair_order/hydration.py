"""Edit mode: map a persisted order back into draft shape.

Orders written by older clients use different field names, so every field
has a list of fallbacks. Names stored on the order are kept as the initial
snapshots; the cascade replaces them once the catalog supplies current ones.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional, Union

from .config import WorkflowSettings
from .helpers import display_name, extract_amount, normalize_id, pick
from .models import FEE_LADDER, Customer, DeviceSelection, Fees, OrderDraft, PartLine, RoutingMode


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def _customer(order: Mapping[str, Any]) -> Optional[Customer]:
    """Resolve the customer reference.

    `customerId` holds the reference, either populated or as a bare id.
    `customer` is a denormalized contact block that usually has no id; it
    only fills in contact fields the reference lacks.
    """
    ref = order.get("customerId")
    contact = _section(order, "customer")
    populated = ref if isinstance(ref, Mapping) else {}
    customer_id = normalize_id(ref) or normalize_id(contact)
    if not customer_id:
        return None
    return Customer.from_api({**contact, **populated, "id": customer_id})


def _device(data: Mapping[str, Any], locales) -> DeviceSelection:
    names = _section(data, "names")
    return DeviceSelection(
        type_id=normalize_id(pick(data, "typeId", "deviceTypeId", "type")),
        brand_id=normalize_id(pick(data, "brandId", "brand")),
        model_id=normalize_id(pick(data, "modelId", "model")),
        type_name=display_name(names.get("deviceType"), locales),
        brand_name=display_name(names.get("brand"), locales),
        model_name=display_name(names.get("model"), locales),
    )


def _lines(order: Mapping[str, Any]) -> list[PartLine]:
    lines = []
    for item in pick(order, "items", "products", default=[]):
        if not isinstance(item, Mapping):
            continue
        part_id = normalize_id(pick(item, "partId", "productId", "part", "product"))
        try:
            quantity = int(item.get("quantity") or 1)
        except (TypeError, ValueError):
            quantity = 1
        lines.append(PartLine(part_id=part_id, quantity=max(quantity, 1)))
    return lines


def _routing_mode(order: Mapping[str, Any]) -> Optional[RoutingMode]:
    flag = order.get("isCentralService")
    if isinstance(flag, bool):
        return RoutingMode.CENTRAL if flag else RoutingMode.BRANCH
    legacy = order.get("isCentral")
    if legacy in ("yes", "no"):
        return RoutingMode.CENTRAL if legacy == "yes" else RoutingMode.BRANCH
    service_type = order.get("serviceType")
    if service_type == "central_service":
        return RoutingMode.CENTRAL
    if service_type == "branch_service":
        return RoutingMode.BRANCH
    return None


def _ladder_fee(default: int, *candidates: Any) -> int:
    """First candidate that is on the fee ladder, else the default."""
    for candidate in candidates:
        if candidate is None:
            continue
        amount = extract_amount(candidate)
        if amount == amount.to_integral_value() and int(amount) in FEE_LADDER:
            return int(amount)
    return default


def _fees(order: Mapping[str, Any], default: int) -> Fees:
    fees = _section(order, "fees")
    branch = _section(order, "branchService")
    central = _section(order, "centralService")
    return Fees(
        branch_service_fee=_ladder_fee(
            default, fees.get("branchServiceFee"), branch.get("branchServiceFee"), order.get("branchServiceFee")
        ),
        central_service_fee=_ladder_fee(
            default, fees.get("centralServiceFee"), central.get("serviceFee"), order.get("centralServiceFee")
        ),
        branch_profit=_ladder_fee(
            default, fees.get("branchProfit"), branch.get("branchPartProfit"), order.get("branchPartProfit")
        ),
    )


def _deposit(order: Mapping[str, Any]) -> Union[int, Decimal]:
    payment = _section(order, "payment")
    for candidate in (payment.get("depositAmount"), payment.get("paidAmount"), order.get("depositAmount")):
        amount = extract_amount(candidate)
        if amount:
            return int(amount) if amount == amount.to_integral_value() else amount
    return 0


def draft_from_order(order: Mapping[str, Any], settings: Optional[WorkflowSettings] = None) -> OrderDraft:
    """Build an editable draft from an order returned by the order service."""
    settings = settings or WorkflowSettings()
    if isinstance(order.get("order"), Mapping):
        order = order["order"]
    elif isinstance(order.get("data"), Mapping):
        order = order["data"]

    device = _section(order, "device")
    loaned = _section(order, "loanedDevice")
    given = order.get("isLoanedDeviceGiven")

    return OrderDraft(
        customer=_customer(order),
        device=_device(device, settings.name_locales),
        is_loaned_device_given=bool(loaned) if given is None else bool(given),
        loaned_device=_device(loaned, settings.name_locales),
        routing_mode=_routing_mode(order),
        lines=_lines(order),
        fees=_fees(order, settings.default_fee),
        deposit_amount=_deposit(order),
        serial_number=device.get("serialNumber") or "",
        condition=device.get("condition") or "",
        description=order.get("description") or "",
        order_id=normalize_id(pick(order, "_id", "id")),
    )
