"""Entry points that wire the workflow components around one draft."""

from collections.abc import Mapping
from concurrent.futures import Future
from typing import Any, Optional, Union

import structlog

from .cascade import DeviceCascadeSelector
from .catalog import CatalogService, PartCatalogView
from .config import WorkflowSettings
from .customers import CustomerDirectory, CustomerLookup, prefill_new_customer
from .errors import WorkflowError
from .hydration import draft_from_order
from .lines import PartLineRegistry
from .models import BranchSnapshot, OrderDraft, SavedOrder, Step, UserContext
from .receipt import Receipt, ReceiptProjector
from .steps import StepController, parse_resume_step
from .submitter import OrderService, OrderSubmitter


class OrderWorkflow:
    """One order-creation or order-editing session.

    Example:
        workflow = OrderWorkflow(catalog, directory, orders, branch, user)
        steps = workflow.start_create()
        steps.select_type("phone")
        ...
        saved = workflow.submit()
        print(workflow.receipt(saved).text)
    """

    def __init__(
        self,
        catalog: CatalogService,
        directory: CustomerDirectory,
        orders: OrderService,
        branch: Union[BranchSnapshot, Mapping[str, Any]],
        user: Optional[UserContext] = None,
        settings: Optional[WorkflowSettings] = None,
        log=None,
    ):
        self._catalog = catalog
        self._directory = directory
        self._orders = orders
        self.branch = branch if isinstance(branch, BranchSnapshot) else BranchSnapshot.from_api(branch)
        self.user = user
        self.settings = settings or WorkflowSettings()
        self._log = (log or structlog.get_logger()).bind(branch_id=self.branch.id)

        self.view = PartCatalogView(self.settings.name_locales)
        self.lookup = CustomerLookup(directory, delay=self.settings.search_debounce_seconds, log=self._log)
        self.submitter = OrderSubmitter(
            orders, self.view, self.branch, directory=directory, settings=self.settings, log=self._log
        )
        self.projector = ReceiptProjector(log=self._log)
        self.controller: Optional[StepController] = None

    def start_create(self, resume_step: Any = None, resume_customer_id: Optional[str] = None) -> StepController:
        """Begin a new order with an empty draft, optionally resuming at a step."""
        step = parse_resume_step(resume_step) if resume_step is not None else Step.DEVICE
        controller = self._build(OrderDraft.empty(self.settings.default_fee), "create", step)
        controller.cascade.load_device_types()
        self._log.info("workflow_started", mode="create", step=int(step))

        if resume_customer_id:
            customer = self.lookup.find(resume_customer_id)
            if customer is None:
                self._log.warning("resume_customer_not_found", customer_id=resume_customer_id)
            else:
                controller.select_customer(customer)
        return controller

    def start_edit(self, order_id: str) -> Union[StepController, Future]:
        """Load a persisted order into a draft; a Future when the service is asynchronous."""
        log = self._log.bind(order_id=order_id)
        try:
            reply = self._orders.fetch_by_id(order_id)
        except Exception as e:
            log.error("order_fetch_failed", error=str(e))
            raise WorkflowError("order fetch failed", e) from e

        if not isinstance(reply, Future):
            return self._hydrate(order_id, reply)

        ready: Future = Future()

        def on_done(fut: Future) -> None:
            error = fut.exception()
            if error is not None:
                log.error("order_fetch_failed", error=str(error))
                ready.set_exception(WorkflowError("order fetch failed", error))
            else:
                ready.set_result(self._hydrate(order_id, fut.result()))

        reply.add_done_callback(on_done)
        return ready

    def new_customer_form(self) -> dict[str, str]:
        return prefill_new_customer(self.lookup.term)

    def submit(self) -> Union[SavedOrder, Future, None]:
        controller = self._require_controller()
        draft = controller.draft
        return self.submitter.submit(draft, mode=controller.mode, existing_order_id=draft.order_id)

    def receipt(self, saved: SavedOrder) -> Receipt:
        return self.projector.project(saved)

    def _hydrate(self, order_id: str, order: Any) -> StepController:
        draft = draft_from_order(order or {}, self.settings)
        draft.order_id = draft.order_id or order_id
        controller = self._build(draft, "edit", Step.DEVICE)
        controller.cascade.restore()
        self._log.info("workflow_started", mode="edit", order_id=draft.order_id, lines=len(draft.lines))
        return controller

    def _build(self, draft: OrderDraft, mode: str, step: Step) -> StepController:
        cascade = DeviceCascadeSelector(self._catalog, self.view, draft, log=self._log)
        lines = PartLineRegistry(draft.lines, self.view, log=self._log)
        self.controller = StepController(
            draft,
            cascade,
            lines,
            directory=self._directory,
            branch=self.branch,
            user=self.user,
            settings=self.settings,
            step=step,
            mode=mode,
            log=self._log,
        )
        return self.controller

    def _require_controller(self) -> StepController:
        if self.controller is None:
            raise WorkflowError("workflow not started")
        return self.controller
