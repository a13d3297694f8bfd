"""Linear four-step flow over one order draft.

Step 1 collects the device and routing mode, step 2 the customer, step 3
service options and the loaned device, step 4 fees, deposit and payment.
Every mutation of the draft goes through the controller, which refuses
changes once the draft is saved and returns a failed draft to editing.
"""

from typing import Any, Optional, Union

import structlog

from .cascade import DeviceCascadeSelector
from .config import WorkflowSettings
from .customers import CustomerDirectory, create_customer
from .errors import DraftLockedError, InvalidArgumentError, StepValidationError
from .lines import PartLineRegistry
from .models import (
    DEPOSIT_OPTIONS,
    FEE_FIELDS,
    FEE_LADDER,
    BranchSnapshot,
    Customer,
    DraftStatus,
    OrderDraft,
    PricingSnapshot,
    RoutingMode,
    Step,
    UserContext,
)
from .pricing import price_draft
from .validation import require_fields, require_member

FIRST_STEP = Step.DEVICE
LAST_STEP = Step.PAYMENT


def parse_resume_step(value: Any) -> Step:
    """Map an externally supplied resume parameter to a step, falling back to step 1."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return FIRST_STEP
    if FIRST_STEP <= number <= LAST_STEP:
        return Step(number)
    return FIRST_STEP


class StepController:
    """Gatekeeps step advancement and mediates every draft mutation."""

    def __init__(
        self,
        draft: OrderDraft,
        cascade: DeviceCascadeSelector,
        lines: PartLineRegistry,
        directory: Optional[CustomerDirectory] = None,
        branch: Optional[BranchSnapshot] = None,
        user: Optional[UserContext] = None,
        settings: Optional[WorkflowSettings] = None,
        step: Step = FIRST_STEP,
        mode: str = "create",
        log=None,
    ):
        self.draft = draft
        self.cascade = cascade
        self.lines = lines
        self._directory = directory
        self._branch = branch
        self._user = user
        self._settings = settings or WorkflowSettings()
        self.mode = mode
        self._step = Step(step)
        self._log = (log or structlog.get_logger()).bind(component="steps", mode=mode)

    @property
    def step(self) -> Step:
        return self._step

    # -- navigation -----------------------------------------------------------

    def missing_fields(self, step: Optional[Step] = None) -> list[str]:
        """Checklist of required fields still missing to leave ``step``."""
        checks = self._guard(self._step if step is None else Step(step))
        return [name for name, value in checks.items() if not value]

    def can_advance(self) -> bool:
        return not self.missing_fields()

    def next(self) -> Step:
        if self._step == LAST_STEP:
            return self._step
        checks = self._guard(self._step)
        try:
            require_fields(int(self._step), checks)
        except StepValidationError:
            self._log.info("step_rejected", step=int(self._step), missing=self.missing_fields())
            raise
        self._step = Step(self._step + 1)
        self._log.info("step_advanced", step=int(self._step))
        return self._step

    def prev(self) -> Step:
        if self._step > FIRST_STEP:
            self._step = Step(self._step - 1)
            self._log.info("step_back", step=int(self._step))
        return self._step

    def validate_submission(self) -> PricingSnapshot:
        """Check the submit guard and return the pricing that would be submitted."""
        require_fields(int(LAST_STEP), self._guard(LAST_STEP))
        return self.pricing()

    def _guard(self, step: Step) -> dict[str, Any]:
        if step == Step.DEVICE:
            device = self.draft.device
            return {
                "device type": device.type_id,
                "brand": device.brand_id,
                "model": device.model_id,
                "routing mode": self.draft.routing_mode,
            }
        if step == Step.CUSTOMER:
            return {"customer": self.draft.customer is not None and self.draft.customer.id}
        if step == Step.SERVICE:
            return {}
        return {
            "routing mode": self.draft.routing_mode,
            "customer total": self.pricing().customer_total is not None,
        }

    # -- customer -------------------------------------------------------------

    def select_customer(self, customer: Union[Customer, dict]) -> None:
        """Attach a customer; on step 2 this also moves on to step 3.

        Selecting from any other step leaves the step unchanged so the step 1
        guard cannot be skipped.
        """
        self._editable()
        self.draft.customer = Customer.from_api(customer)
        self._log.info("customer_selected", customer_id=self.draft.customer.id)
        if self._step == Step.CUSTOMER:
            self._step = Step.SERVICE
            self._log.info("step_advanced", step=int(self._step))

    def create_customer(self, form: dict) -> Customer:
        """Create a customer through the directory and select it."""
        self._editable()
        if self._directory is None:
            raise InvalidArgumentError("No customer directory configured")
        customer = create_customer(
            self._directory,
            form,
            self._branch or BranchSnapshot(id=""),
            self._user,
            preferred_language=self._settings.preferred_language,
            log=self._log,
        )
        self.select_customer(customer)
        return customer

    # -- device ---------------------------------------------------------------

    def select_type(self, type_id: Optional[str]) -> None:
        self._editable()
        self.cascade.select_type(type_id)

    def select_brand(self, brand_id: Optional[str]) -> None:
        self._editable()
        self.cascade.select_brand(brand_id)

    def select_model(self, model_id: Optional[str]) -> None:
        self._editable()
        self.cascade.select_model(model_id)

    def set_loaned_device_given(self, given: bool) -> None:
        self._editable()
        self.cascade.set_loaned_device_given(given)

    def select_loaned_type(self, type_id: Optional[str]) -> None:
        self._editable()
        self.cascade.select_loaned_type(type_id)

    def select_loaned_brand(self, brand_id: Optional[str]) -> None:
        self._editable()
        self.cascade.select_loaned_brand(brand_id)

    def select_loaned_model(self, model_id: Optional[str]) -> None:
        self._editable()
        self.cascade.select_loaned_model(model_id)

    def set_device_details(
        self,
        serial_number: Optional[str] = None,
        condition: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        self._editable()
        if serial_number is not None:
            self.draft.serial_number = serial_number
        if condition is not None:
            self.draft.condition = condition
        if description is not None:
            self.draft.description = description

    # -- service and payment --------------------------------------------------

    def set_routing_mode(self, mode: Union[RoutingMode, str]) -> None:
        """Choose central or branch service. Lines are never touched."""
        self._editable()
        try:
            self.draft.routing_mode = RoutingMode(mode)
        except ValueError:
            raise InvalidArgumentError(f"Unknown routing mode: {mode!r}")
        self._log.info("routing_mode_set", routing_mode=self.draft.routing_mode.value)

    def set_fee(self, name: str, value: int) -> None:
        self._editable()
        require_member(name, FEE_FIELDS, f"Unknown fee: {name!r}")
        require_member(value, FEE_LADDER, f"{name} must be on the fee ladder, got {value}")
        setattr(self.draft.fees, name, value)
        self._log.debug("fee_set", fee=name, value=value)

    def set_deposit(self, amount: int) -> None:
        self._editable()
        require_member(amount, DEPOSIT_OPTIONS, f"Deposit not allowed: {amount}")
        self.draft.deposit_amount = amount
        self._log.debug("deposit_set", deposit=amount)

    # -- lines ----------------------------------------------------------------

    def add_line(self, part_id: Optional[str] = None, quantity: int = 1) -> int:
        self._editable()
        return self.lines.add_line(part_id, quantity)

    def remove_line(self, index: int) -> None:
        self._editable()
        self.lines.remove_line(index)

    def set_part_id(self, index: int, part_id: Optional[str]) -> None:
        self._editable()
        self.lines.set_part_id(index, part_id)

    def set_quantity(self, index: int, quantity: int) -> None:
        self._editable()
        self.lines.set_quantity(index, quantity)

    # -- derived --------------------------------------------------------------

    def pricing(self) -> PricingSnapshot:
        return price_draft(self.draft, self.lines)

    def _editable(self) -> None:
        if self.draft.is_saved():
            raise DraftLockedError()
        if self.draft.status == DraftStatus.FAILED:
            self.draft.status = DraftStatus.DRAFT
            self._log.info("draft_reopened")
