"""Order creation and editing workflow for a repair shop."""

from .errors import (
    WorkflowError,
    CatalogFetchError,
    CustomerDirectoryError,
    StepValidationError,
    InvalidArgumentError,
    SubmissionError,
    DraftLockedError,
)
from .config import WorkflowSettings, configure_logging
from .models import (
    FEE_LADDER,
    DEPOSIT_OPTIONS,
    RoutingMode,
    DraftStatus,
    Step,
    CatalogEntry,
    Part,
    Customer,
    BranchSnapshot,
    UserContext,
    DeviceSelection,
    PartLine,
    ResolvedLine,
    Fees,
    OrderDraft,
    PricingSnapshot,
    SavedOrder,
)
from .catalog import CatalogService, PartCatalogView, PRIMARY, LOANED
from .lines import PartLineRegistry
from .cascade import DeviceCascadeSelector
from .pricing import compute_pricing, price_draft
from .customers import (
    CustomerDirectory,
    CustomerLookup,
    classify_term,
    create_customer,
    prefill_new_customer,
)
from .steps import StepController, parse_resume_step
from .submitter import OrderService, OrderSubmitter, build_payload
from .hydration import draft_from_order
from .receipt import Receipt, ReceiptProjector, format_receipt
from .workflow import OrderWorkflow

__all__ = [
    # Errors
    "WorkflowError",
    "CatalogFetchError",
    "CustomerDirectoryError",
    "StepValidationError",
    "InvalidArgumentError",
    "SubmissionError",
    "DraftLockedError",
    # Config
    "WorkflowSettings",
    "configure_logging",
    # Models
    "FEE_LADDER",
    "DEPOSIT_OPTIONS",
    "RoutingMode",
    "DraftStatus",
    "Step",
    "CatalogEntry",
    "Part",
    "Customer",
    "BranchSnapshot",
    "UserContext",
    "DeviceSelection",
    "PartLine",
    "ResolvedLine",
    "Fees",
    "OrderDraft",
    "PricingSnapshot",
    "SavedOrder",
    # Catalog and lines
    "CatalogService",
    "PartCatalogView",
    "PRIMARY",
    "LOANED",
    "PartLineRegistry",
    "DeviceCascadeSelector",
    # Pricing
    "compute_pricing",
    "price_draft",
    # Customers
    "CustomerDirectory",
    "CustomerLookup",
    "classify_term",
    "create_customer",
    "prefill_new_customer",
    # Flow
    "StepController",
    "parse_resume_step",
    "OrderService",
    "OrderSubmitter",
    "build_payload",
    "draft_from_order",
    # Receipt
    "Receipt",
    "ReceiptProjector",
    "format_receipt",
    # Entry point
    "OrderWorkflow",
]
