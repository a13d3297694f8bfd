"""Data models for the repair order workflow."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Optional, Union

from .helpers import ZERO, first_amount, normalize_id, pick

# 20, 25, ... 200
FEE_LADDER: tuple[int, ...] = tuple(range(20, 201, 5))

# 0, 10, 15, ... 100
DEPOSIT_OPTIONS: tuple[int, ...] = (0,) + tuple(range(10, 101, 5))

FEE_FIELDS = ("branch_service_fee", "central_service_fee", "branch_profit")


class RoutingMode(str, Enum):
    """Where the repair is carried out."""

    CENTRAL = "central"
    BRANCH = "branch"


class DraftStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTING = "submitting"
    SAVED = "saved"
    FAILED = "failed"


class Step(IntEnum):
    DEVICE = 1
    CUSTOMER = 2
    SERVICE = 3
    PAYMENT = 4


# =============================================================================
# Catalog records
# =============================================================================


@dataclass(frozen=True)
class CatalogEntry:
    """A device type, brand or model as loaded from the catalog service."""

    id: str
    name: Any = ""
    is_active: bool = True
    device_type_id: Optional[str] = None
    brand_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Any) -> "CatalogEntry":
        if isinstance(data, CatalogEntry):
            return data
        return cls(
            id=normalize_id(pick(data, "id", "_id")) or "",
            name=data.get("name", ""),
            is_active=bool(pick(data, "isActive", "is_active", default=True)),
            device_type_id=normalize_id(pick(data, "deviceTypeId", "device_type_id")),
            brand_id=normalize_id(pick(data, "brandId", "brand_id")),
        )


@dataclass(frozen=True)
class Part:
    """A replacement part with the prices the branch charges for it."""

    id: str
    name: Any = ""
    unit_price: Decimal = ZERO
    unit_service_fee: Decimal = ZERO
    model_id: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_api(cls, data: Any) -> "Part":
        if isinstance(data, Part):
            return data
        return cls(
            id=normalize_id(pick(data, "id", "_id")) or "",
            name=data.get("name", ""),
            unit_price=first_amount(data.get("branch_price"), data.get("price")),
            unit_service_fee=first_amount(
                pick(data, "branch_serviceFee", "branch_service_fee"),
                pick(data, "serviceFee", "service_fee"),
            ),
            model_id=normalize_id(pick(data, "modelId", "model_id")),
            is_active=bool(pick(data, "isActive", "is_active", default=True)),
        )


@dataclass(frozen=True)
class Customer:
    id: str
    name: str = ""
    phone: str = ""
    email: Optional[str] = None
    preferred_language: Optional[str] = None

    @classmethod
    def from_api(cls, data: Any) -> "Customer":
        if isinstance(data, Customer):
            return data
        return cls(
            id=normalize_id(pick(data, "id", "_id")) or "",
            name=data.get("name") or "",
            phone=data.get("phone") or "",
            email=data.get("email") or None,
            preferred_language=pick(data, "preferredLanguage", "preferred_language"),
        )


@dataclass(frozen=True)
class BranchSnapshot:
    """Read-only branch context, embedded verbatim into the order payload."""

    id: str
    name: str = ""
    address: Any = None
    phone: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "BranchSnapshot":
        return cls(
            id=normalize_id(pick(data, "id", "_id")) or "",
            name=data.get("name") or "",
            address=data.get("address"),
            phone=data.get("phone") or "",
            raw=dict(data),
        )

    def as_payload(self) -> dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        return {"id": self.id, "name": self.name, "address": self.address, "phone": self.phone}


@dataclass(frozen=True)
class UserContext:
    """The signed-in user, recorded as creator of new customers."""

    id: str
    email: str = ""
    full_name: str = ""


# =============================================================================
# Draft
# =============================================================================


@dataclass
class DeviceSelection:
    """Dependent type -> brand -> model ids with their name snapshots.

    Setting an upstream id clears every id and name strictly below it.
    """

    type_id: Optional[str] = None
    brand_id: Optional[str] = None
    model_id: Optional[str] = None
    type_name: str = ""
    brand_name: str = ""
    model_name: str = ""

    def set_type(self, type_id: Optional[str], name: str = "") -> None:
        self.type_id, self.type_name = type_id or None, name
        self.set_brand(None)

    def set_brand(self, brand_id: Optional[str], name: str = "") -> None:
        self.brand_id, self.brand_name = brand_id or None, name
        self.set_model(None)

    def set_model(self, model_id: Optional[str], name: str = "") -> None:
        self.model_id, self.model_name = model_id or None, name

    def clear(self) -> None:
        self.set_type(None)

    def is_complete(self) -> bool:
        return bool(self.type_id and self.brand_id and self.model_id)

    def names(self) -> dict[str, str]:
        return {"deviceType": self.type_name, "brand": self.brand_name, "model": self.model_name}


@dataclass
class PartLine:
    part_id: Optional[str] = None
    quantity: int = 1


@dataclass(frozen=True)
class ResolvedLine:
    """A PartLine joined against the loaded part catalog."""

    part_id: Optional[str]
    quantity: int
    name: str
    unit_price: Decimal
    unit_service_fee: Decimal
    resolved: bool

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Fees:
    branch_service_fee: int = 20
    central_service_fee: int = 20
    branch_profit: int = 20


@dataclass
class OrderDraft:
    """The mutable working record for one order being created or edited."""

    customer: Optional[Customer] = None
    device: DeviceSelection = field(default_factory=DeviceSelection)
    is_loaned_device_given: bool = False
    loaned_device: DeviceSelection = field(default_factory=DeviceSelection)
    routing_mode: Optional[RoutingMode] = None
    lines: list[PartLine] = field(default_factory=list)
    fees: Fees = field(default_factory=Fees)
    deposit_amount: Union[int, Decimal] = 0
    status: DraftStatus = DraftStatus.DRAFT
    serial_number: str = ""
    condition: str = ""
    description: str = ""
    order_id: Optional[str] = None

    @classmethod
    def empty(cls, default_fee: int = 20) -> "OrderDraft":
        return cls(fees=Fees(default_fee, default_fee, default_fee))

    def is_saved(self) -> bool:
        return self.status == DraftStatus.SAVED

    def is_submitting(self) -> bool:
        return self.status == DraftStatus.SUBMITTING


# =============================================================================
# Derived and finalized records
# =============================================================================


@dataclass(frozen=True)
class PricingSnapshot:
    """All totals of a draft, recomputed from scratch on every change."""

    parts_total: Decimal
    central_parts_cost: Decimal
    central_service_fee_total: Decimal
    total_central_payment: Decimal
    customer_total: Decimal
    remaining_amount: Decimal


@dataclass(frozen=True)
class SavedOrder:
    """A persisted order: the server reply merged with the local name snapshots."""

    id: Optional[str]
    order_number: Optional[str]
    barcode: Optional[str]
    mode: str
    order: Mapping[str, Any]
    payload: Mapping[str, Any]
    pricing: PricingSnapshot
    customer: Optional[Customer] = None
    created_at: Optional[str] = None

    @property
    def reference(self) -> str:
        return self.order_number or self.id or ""
