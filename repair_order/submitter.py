"""Final payload assembly and the create/update lifecycle of an order draft.

Lifecycle: Draft -> Submitting -> Saved (terminal) | Failed -> Draft.

The payload carries ids alongside the display names captured at selection
time and the priced lines as they resolve at submit time, so the persisted
record stays readable after the catalog changes.
"""

from collections.abc import Mapping
from concurrent.futures import Future
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, Union

import structlog

from .catalog import PartCatalogView
from .config import WorkflowSettings
from .customers import CustomerDirectory
from .errors import DraftLockedError, InvalidArgumentError, SubmissionError
from .helpers import normalize_id, pick
from .lines import PartLineRegistry
from .models import (
    BranchSnapshot,
    DeviceSelection,
    DraftStatus,
    OrderDraft,
    PricingSnapshot,
    RoutingMode,
    SavedOrder,
    Step,
)
from .pricing import price_draft
from .validation import require_fields, require_member

MODES = ("create", "edit")

CENTRAL_SERVICE = "central_service"
BRANCH_SERVICE = "branch_service"


class OrderService(Protocol):
    """Persistence collaborator. Each call returns the reply or a Future of it."""

    def create(self, payload: Mapping[str, Any]) -> Any: ...

    def update(self, order_id: str, payload: Mapping[str, Any]) -> Any: ...

    def fetch_by_id(self, order_id: str) -> Any: ...


def as_number(value: Decimal) -> Union[int, float]:
    """Render an amount for the wire: integral values as int, others as float."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _device_payload(device: DeviceSelection) -> dict[str, Any]:
    return {
        "typeId": device.type_id,
        "brandId": device.brand_id,
        "modelId": device.model_id,
        "names": device.names(),
    }


def build_payload(
    draft: OrderDraft,
    lines: PartLineRegistry,
    pricing: PricingSnapshot,
    branch: BranchSnapshot,
    payment_method: str = "cash",
) -> dict[str, Any]:
    """Assemble the flat order record sent to the order service."""
    central = draft.routing_mode == RoutingMode.CENTRAL
    deposit = as_number(Decimal(draft.deposit_amount))

    device = _device_payload(draft.device)
    if draft.serial_number:
        device["serialNumber"] = draft.serial_number
    if draft.condition:
        device["condition"] = draft.condition

    payload: dict[str, Any] = {
        "customerId": draft.customer.id if draft.customer else None,
        "device": device,
        "loanedDevice": _device_payload(draft.loaned_device) if draft.is_loaned_device_given else None,
        "isLoanedDeviceGiven": draft.is_loaned_device_given,
        "items": [
            {
                "partId": line.part_id,
                "name": line.name,
                "quantity": line.quantity,
                "unitPrice": as_number(line.unit_price),
            }
            for line in lines.selected_lines()
        ],
        "payment": {
            "method": payment_method,
            "amount": as_number(pricing.customer_total),
            "status": "pending" if payment_method == "pending" else "paid",
            "depositAmount": deposit,
            "remainingAmount": as_number(pricing.remaining_amount),
        },
        "serviceType": CENTRAL_SERVICE if central else BRANCH_SERVICE,
        "isCentralService": central,
        "centralPartPrices": as_number(pricing.central_parts_cost) if central else None,
        "centralServiceFee": draft.fees.central_service_fee if central else None,
        "centralServiceFeeTotal": as_number(pricing.central_service_fee_total) if central else None,
        "branchServiceFee": draft.fees.branch_service_fee,
        "centralPartPayment": None if central else as_number(pricing.central_parts_cost),
        "branchPartProfit": None if central else draft.fees.branch_profit,
        "totalCentralPayment": as_number(pricing.total_central_payment),
        "fees": {
            "branchServiceFee": draft.fees.branch_service_fee,
            "centralServiceFee": draft.fees.central_service_fee,
            "branchProfit": draft.fees.branch_profit,
        },
        "depositAmount": deposit,
        "branchSnapshot": branch.as_payload(),
    }
    if draft.description:
        payload["description"] = draft.description
    return payload


class OrderSubmitter:
    """Sends a priced draft to the order service, guarding against double submits."""

    def __init__(
        self,
        orders: OrderService,
        view: PartCatalogView,
        branch: BranchSnapshot,
        directory: Optional[CustomerDirectory] = None,
        settings: Optional[WorkflowSettings] = None,
        log=None,
        on_error: Optional[Callable[[SubmissionError], None]] = None,
    ):
        self._orders = orders
        self._view = view
        self._branch = branch
        self._directory = directory
        self._settings = settings or WorkflowSettings()
        self._log = (log or structlog.get_logger()).bind(component="submitter")
        self._on_error = on_error
        self.last_error: Optional[SubmissionError] = None

    def submit(
        self,
        draft: OrderDraft,
        mode: str = "create",
        existing_order_id: Optional[str] = None,
    ) -> Union[SavedOrder, Future, None]:
        """Create or update the order.

        Returns the SavedOrder, or a Future of it when the order service is
        asynchronous. Returns None without calling the service when a submit
        is already in flight.

        Raises:
            DraftLockedError: The draft was already saved.
            StepValidationError: The submit guard failed; nothing was sent.
            SubmissionError: The service call failed; the draft is Failed.
        """
        if draft.is_saved():
            raise DraftLockedError()
        if draft.is_submitting():
            self._log.warning("submit_ignored_in_flight", mode=mode)
            return None

        require_member(mode, MODES, f"Unknown submit mode: {mode!r}")
        if mode == "edit" and not existing_order_id:
            raise InvalidArgumentError("Editing requires the existing order id")

        lines = PartLineRegistry(draft.lines, self._view, log=self._log)
        pricing = price_draft(draft, lines)
        require_fields(
            int(Step.PAYMENT),
            {
                "routing mode": draft.routing_mode,
                "customer total": pricing.customer_total is not None,
            },
        )
        payload = build_payload(draft, lines, pricing, self._branch, self._settings.payment_method)

        draft.status = DraftStatus.SUBMITTING
        log = self._log.bind(mode=mode, order_id=existing_order_id)
        log.info("submit_started", items=len(payload["items"]), total=payload["payment"]["amount"])

        try:
            if mode == "edit":
                reply = self._orders.update(existing_order_id, payload)
            else:
                reply = self._orders.create(payload)
        except Exception as e:
            raise self._fail(draft, e, log) from e

        if not isinstance(reply, Future):
            return self._complete(draft, mode, existing_order_id, payload, pricing, reply, log)

        saved: Future = Future()

        def on_done(fut: Future) -> None:
            error = fut.exception()
            if error is not None:
                saved.set_exception(self._fail(draft, error, log))
                return
            try:
                result = self._complete(draft, mode, existing_order_id, payload, pricing, fut.result(), log)
            except SubmissionError as e:
                saved.set_exception(e)
                return
            saved.set_result(result)

        reply.add_done_callback(on_done)
        return saved

    def _complete(
        self,
        draft: OrderDraft,
        mode: str,
        existing_order_id: Optional[str],
        payload: dict[str, Any],
        pricing: PricingSnapshot,
        reply: Any,
        log,
    ) -> SavedOrder:
        try:
            saved = self._accept(draft, mode, existing_order_id, payload, pricing, reply, log)
        except SubmissionError:
            raise
        except Exception as e:
            raise self._fail(draft, e, log) from e

        if mode == "create":
            self._link_customer(saved, log)
        return saved

    def _accept(
        self,
        draft: OrderDraft,
        mode: str,
        existing_order_id: Optional[str],
        payload: dict[str, Any],
        pricing: PricingSnapshot,
        reply: Any,
        log,
    ) -> SavedOrder:
        """Turn a service reply into a SavedOrder. Malformed replies raise."""
        if isinstance(reply, Mapping) and reply.get("success") is False:
            message = reply.get("message") or "order service reported failure"
            raise self._fail(draft, RuntimeError(message), log)

        order = reply if isinstance(reply, Mapping) else {}
        if isinstance(order.get("order"), Mapping):
            order = order["order"]

        merged = {**payload, **order}
        merged["device"] = {**payload["device"], **(order.get("device") or {}), "names": payload["device"]["names"]}
        if payload["loanedDevice"]:
            merged["loanedDevice"] = {
                **payload["loanedDevice"],
                **(order.get("loanedDevice") or {}),
                "names": payload["loanedDevice"]["names"],
            }
        else:
            merged["loanedDevice"] = None
        merged["isLoanedDeviceGiven"] = payload["isLoanedDeviceGiven"]
        merged["branchSnapshot"] = payload["branchSnapshot"]

        order_id = normalize_id(pick(order, "_id", "id")) or existing_order_id
        saved = SavedOrder(
            id=order_id,
            order_number=pick(order, "orderNumber", "order_number"),
            barcode=order.get("barcode"),
            mode=mode,
            order=merged,
            payload=payload,
            pricing=pricing,
            customer=draft.customer,
            created_at=order.get("createdAt") or datetime.now(timezone.utc).isoformat(),
        )

        draft.status = DraftStatus.SAVED
        draft.order_id = order_id
        self.last_error = None
        log.info("order_saved", order_id=order_id, order_number=saved.order_number)
        return saved

    def _link_customer(self, saved: SavedOrder, log) -> None:
        if self._directory is None or saved.customer is None:
            return
        try:
            self._directory.add_order(
                saved.customer.id,
                {"orderId": saved.id, "orderNumber": saved.order_number, "barcode": saved.barcode},
            )
        except Exception as e:
            log.warning("customer_order_link_failed", customer_id=saved.customer.id, error=str(e))

    def _fail(self, draft: OrderDraft, cause: BaseException, log) -> SubmissionError:
        error = cause if isinstance(cause, SubmissionError) else SubmissionError(cause)
        draft.status = DraftStatus.FAILED
        self.last_error = error
        log.error("submit_failed", error=str(cause))
        if self._on_error is not None:
            self._on_error(error)
        return error
