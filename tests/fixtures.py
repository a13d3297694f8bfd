"""Shared in-memory collaborators and catalog data for the workflow tests.

Catalog:
- types: phone, tablet (watch is inactive)
- brands: phone -> apple, samsung (nokia inactive)
- models: apple -> iphone14, iphone13; samsung -> galaxy-s23
- parts: iphone14 -> A (50, fee 10), B (20, fee 0); C inactive
         iphone13 -> D (30, fee 5); galaxy-s23 -> E (40, fee 8)
"""

from concurrent.futures import Future
from typing import Any, Optional

from repair_order import BranchSnapshot, UserContext

DEVICE_TYPES = [
    {"_id": "phone", "name": "Phone", "isActive": True},
    {"_id": "tablet", "name": "Tablet", "isActive": True},
    {"_id": "watch", "name": "Watch", "isActive": False},
]

BRANDS = {
    "phone": [
        {"_id": "apple", "name": "Apple", "deviceTypeId": "phone", "isActive": True},
        {"_id": "samsung", "name": "Samsung", "deviceTypeId": "phone", "isActive": True},
        {"_id": "nokia", "name": "Nokia", "deviceTypeId": "phone", "isActive": False},
    ],
    "tablet": [
        {"_id": "apple", "name": "Apple", "deviceTypeId": "tablet", "isActive": True},
    ],
}

MODELS = {
    "apple": [
        {"_id": "iphone14", "name": "iPhone 14", "deviceTypeId": "phone", "brandId": "apple", "isActive": True},
        {"_id": "iphone13", "name": "iPhone 13", "deviceTypeId": "phone", "brandId": "apple", "isActive": True},
        {"_id": "ipad", "name": "iPad", "deviceTypeId": "tablet", "brandId": "apple", "isActive": True},
    ],
    "samsung": [
        {"_id": "galaxy-s23", "name": "Galaxy S23", "deviceTypeId": "phone", "brandId": "samsung", "isActive": True},
    ],
}

PARTS = {
    "iphone14": [
        {"_id": "A", "name": {"en": "Display", "de": "Bildschirm"}, "price": 50, "serviceFee": 10,
         "modelId": "iphone14", "isActive": True},
        {"_id": "B", "name": "Battery", "price": {"amount": 20}, "serviceFee": 0,
         "modelId": "iphone14", "isActive": True},
        {"_id": "C", "name": "Camera", "price": 80, "serviceFee": 15, "modelId": "iphone14", "isActive": False},
    ],
    "iphone13": [
        {"_id": "D", "name": "Display 13", "price": 30, "serviceFee": 5, "modelId": "iphone13", "isActive": True},
    ],
    "galaxy-s23": [
        {"_id": "E", "name": "Charging port", "price": 40, "branch_price": 45, "serviceFee": 8,
         "modelId": "galaxy-s23", "isActive": True},
    ],
}

CUSTOMERS = [
    {"_id": "c-1", "name": "Ayşe Yılmaz", "phone": "0532 123 45 67", "email": "ayse@example.com",
     "preferredLanguage": "TR"},
    {"_id": "c-2", "name": "Hans Müller", "phone": "+49 170 1234567", "email": "hans@example.de",
     "preferredLanguage": "DE"},
    {"_id": "c-3", "name": "John Smith", "phone": "0044 20 7946 0958", "email": None},
]

BRANCH = {
    "_id": "b-1",
    "name": "Mitte",
    "address": {"street": "Hauptstr. 1", "postalCode": "10115", "city": "Berlin", "state": "", "country": "DE"},
    "phone": "030 1234",
}


def make_branch() -> BranchSnapshot:
    return BranchSnapshot.from_api(BRANCH)


def make_user() -> UserContext:
    return UserContext(id="u-1", email="staff@example.com", full_name="Staff Member")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _Deferred:
    """Records calls and, in deferred mode, hands out Futures completed by the test."""

    def __init__(self, deferred: bool = False):
        self.deferred = deferred
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, Exception] = {}
        self.pending: list[tuple[tuple[str, Any], Future, Any]] = []

    def _respond(self, method: str, arg: Any, value: Any) -> Any:
        self.calls.append((method, arg))
        if method in self.failures:
            raise self.failures.pop(method)
        if not self.deferred:
            return value
        fut: Future = Future()
        self.pending.append(((method, arg), fut, value))
        return fut

    def _take(self, method: str, arg: Any = None) -> tuple[Future, Any]:
        for i, (call, fut, value) in enumerate(self.pending):
            if call[0] == method and (arg is None or call[1] == arg):
                del self.pending[i]
                return fut, value
        raise AssertionError(f"no pending {method}({arg!r})")

    def complete(self, method: str, arg: Any = None) -> None:
        fut, value = self._take(method, arg)
        fut.set_result(value)

    def fail(self, method: str, error: Exception, arg: Any = None) -> None:
        fut, _ = self._take(method, arg)
        fut.set_exception(error)


class FakeCatalog(_Deferred):
    def list_device_types(self):
        return self._respond("list_device_types", None, list(DEVICE_TYPES))

    def list_brands(self, type_id: str):
        return self._respond("list_brands", type_id, list(BRANDS.get(type_id, [])))

    def list_models(self, brand_id: str):
        return self._respond("list_models", brand_id, list(MODELS.get(brand_id, [])))

    def list_parts(self, model_id: str):
        return self._respond("list_parts", model_id, list(PARTS.get(model_id, [])))


class FakeDirectory:
    def __init__(self, customers: Optional[list] = None):
        self.customers = list(CUSTOMERS if customers is None else customers)
        self.searches: list[str] = []
        self.created: list[dict] = []
        self.linked: list[tuple[str, dict]] = []
        self.search_error: Optional[Exception] = None
        self.create_error: Optional[Exception] = None
        self.link_error: Optional[Exception] = None

    def search(self, term: str):
        self.searches.append(term)
        if self.search_error is not None:
            raise self.search_error
        return list(self.customers)

    def create(self, data: dict):
        if self.create_error is not None:
            raise self.create_error
        self.created.append(dict(data))
        record = {"_id": f"c-new-{len(self.created)}", **data}
        self.customers.append(record)
        return {"success": True, "data": record}

    def add_order(self, customer_id: str, data: dict):
        if self.link_error is not None:
            raise self.link_error
        self.linked.append((customer_id, dict(data)))
        return {"success": True}


class FakeOrderService(_Deferred):
    def __init__(self, deferred: bool = False, orders: Optional[dict] = None):
        super().__init__(deferred)
        self.orders = dict(orders or {})
        self.payloads: list[dict] = []
        self.reply: Optional[dict] = None

    def create(self, payload: dict):
        self.payloads.append(payload)
        number = len(self.payloads)
        reply = self.reply or {
            "success": True,
            "order": {"_id": f"o-{number}", "orderNumber": f"SP-{number:04d}", "barcode": f"99{number:04d}"},
        }
        return self._respond("create", None, reply)

    def update(self, order_id: str, payload: dict):
        self.payloads.append(payload)
        reply = self.reply or {"_id": order_id, "orderNumber": "SP-0042"}
        return self._respond("update", order_id, reply)

    def fetch_by_id(self, order_id: str):
        return self._respond("fetch_by_id", order_id, self.orders.get(order_id))
