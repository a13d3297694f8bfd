"""Customer lookup and creation for step 2 of the workflow."""

import re
import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional, Protocol

import structlog

from .errors import CustomerDirectoryError
from .models import BranchSnapshot, Customer, UserContext

logger = structlog.get_logger()

EMAIL = "email"
PHONE = "phone"
NAME = "name"
ANY = "any"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAME_RE = re.compile(r"^[a-zA-ZğüşıöçĞÜŞİÖÇ\s]+$")
_NON_DIGIT_RE = re.compile(r"\D")


class CustomerDirectory(Protocol):
    """Customer search/create collaborator."""

    def search(self, term: str) -> Sequence[Any]: ...

    def create(self, data: Mapping[str, Any]) -> Any: ...

    def add_order(self, customer_id: str, data: Mapping[str, Any]) -> Any: ...


def _digits(value: Optional[str]) -> str:
    return _NON_DIGIT_RE.sub("", value or "")


def classify_term(term: str) -> str:
    """Classify a search term as email, phone, name or any."""
    if _EMAIL_RE.match(term):
        return EMAIL
    if 10 <= len(_digits(term)) <= 11:
        return PHONE
    if _NAME_RE.match(term) and len(term) >= 2:
        return NAME
    return ANY


def matches(customer: Customer, term: str) -> bool:
    """Whether a customer matches a search term, by the term's classification."""
    kind = classify_term(term)
    needle = term.lower()
    if kind == EMAIL:
        return needle in (customer.email or "").lower()
    if kind == PHONE:
        return _digits(term) in _digits(customer.phone)
    if kind == NAME:
        return needle in customer.name.lower()
    return (
        needle in customer.name.lower()
        or needle in (customer.email or "").lower()
        or term in (customer.phone or "")
    )


def prefill_new_customer(term: str) -> dict[str, str]:
    """Seed the new-customer form from whatever the user was searching for."""
    form = {"name": "", "phone": "", "email": ""}
    term = term.strip()
    if not term:
        return form
    kind = classify_term(term)
    if kind == EMAIL:
        form["email"] = term
    elif kind == PHONE:
        form["phone"] = term
    elif kind == NAME:
        form["name"] = term
    return form


class CustomerLookup:
    """Debounced customer search.

    ``type()`` records the latest term and restarts the delay; ``poll()`` runs
    the search once the delay has elapsed since the last keystroke. Only the
    latest term is ever searched.
    """

    def __init__(
        self,
        directory: CustomerDirectory,
        delay: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
        log=None,
    ):
        self._directory = directory
        self._delay = delay
        self._clock = clock
        self._log = (log or logger).bind(component="customer_lookup")
        self.term = ""
        self.results: list[Customer] = []
        self.last_error: Optional[CustomerDirectoryError] = None
        self._due: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._due is not None

    @property
    def loading(self) -> bool:
        return self.pending

    def type(self, term: str) -> None:
        self.term = term
        if not term.strip():
            self._due = None
            self.results = []
            return
        self._due = self._clock() + self._delay

    def poll(self) -> bool:
        """Run the pending search if its delay has elapsed. Returns True if it ran."""
        if self._due is None or self._clock() < self._due:
            return False
        self._due = None
        self.results = self.search_now(self.term)
        return True

    def search_now(self, term: str) -> list[Customer]:
        """Query the directory and filter by the term's classification.

        Directory failures degrade to an empty result list.
        """
        term = term.strip()
        if not term:
            return []
        try:
            records = self._directory.search(term) or []
        except Exception as e:
            self.last_error = CustomerDirectoryError(e)
            self._log.error("customer_search_failed", term=term, error=str(e))
            return []
        self.last_error = None
        found = [c for c in map(Customer.from_api, records) if matches(c, term)]
        self._log.debug("customer_search_completed", term=term, found=len(found))
        return found

    def find(self, customer_id: str) -> Optional[Customer]:
        """Resolve a customer by id, as needed to restore a resumed draft."""
        try:
            records = self._directory.search(customer_id) or []
        except Exception as e:
            self.last_error = CustomerDirectoryError(e)
            self._log.error("customer_search_failed", term=customer_id, error=str(e))
            return None
        for customer in map(Customer.from_api, records):
            if customer.id == customer_id:
                return customer
        return None


def create_customer(
    directory: CustomerDirectory,
    form: Mapping[str, Any],
    branch: BranchSnapshot,
    user: Optional[UserContext],
    preferred_language: str = "TR",
    clock: Callable[[], float] = time.time,
    log=None,
) -> Customer:
    """Create a customer from the new-customer form.

    A blank name is replaced by ``SP-Customer-<epoch ms>``. Requires a branch
    and a signed-in user, recorded as ``createdBy``.
    """
    log = log or logger
    if not branch.id:
        raise CustomerDirectoryError(ValueError("branch id is required"))
    if user is None or not user.id:
        raise CustomerDirectoryError(ValueError("user context is required"))

    name = (form.get("name") or "").strip() or f"SP-Customer-{int(clock() * 1000)}"
    data = {
        "name": name,
        "phone": (form.get("phone") or "").strip(),
        "email": (form.get("email") or "").strip() or None,
        "branch": branch.id,
        "preferredLanguage": form.get("preferredLanguage") or preferred_language,
        "isActive": True,
        "createdBy": {"id": user.id, "email": user.email, "fullName": user.full_name},
    }

    try:
        created = directory.create(data)
    except Exception as e:
        log.error("customer_create_failed", name=name, error=str(e))
        raise CustomerDirectoryError(e) from e

    if isinstance(created, Mapping) and isinstance(created.get("data"), Mapping):
        created = created["data"]
    customer = Customer.from_api(created)
    if not customer.id:
        raise CustomerDirectoryError(ValueError("directory returned no customer id"))

    log.info("customer_created", customer_id=customer.id, name=customer.name)
    return customer
