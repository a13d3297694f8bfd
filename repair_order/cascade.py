"""Dependent device selection: type -> brand -> model -> parts.

Every selection writes the chosen id and its display-name snapshot into the
draft, resets everything strictly downstream and fetches the next option
list from the catalog service. The same cascade runs for the loaned device,
minus the parts fetch.

Catalog calls may complete synchronously or hand back a Future. Each request
kind carries a generation counter; a response is applied only if no newer
request of the same kind was issued in the meantime, so the latest selection
always wins. A failed fetch is logged, degrades the option list to empty and
is reported through ``on_error``; the user retries by reselecting the parent.
"""

from collections import defaultdict
from concurrent.futures import Future
from typing import Any, Callable, Optional

import structlog

from .catalog import LOANED, PRIMARY, CatalogService, PartCatalogView
from .errors import CatalogFetchError
from .models import OrderDraft

DEVICE_TYPES = "device_types"
PARTS = "parts"


def _brands_key(slot: str) -> str:
    return f"brands:{slot}"


def _models_key(slot: str) -> str:
    return f"models:{slot}"


class DeviceCascadeSelector:
    """Drives the primary and loaned device cascades of one draft."""

    def __init__(
        self,
        catalog: CatalogService,
        view: PartCatalogView,
        draft: OrderDraft,
        log=None,
        on_error: Optional[Callable[[CatalogFetchError], None]] = None,
    ):
        self._catalog = catalog
        self.view = view
        self.draft = draft
        self._log = (log or structlog.get_logger()).bind(component="cascade")
        self._on_error = on_error
        self._generations: dict[str, int] = defaultdict(int)
        self.loading: set[str] = set()
        self.last_error: Optional[CatalogFetchError] = None

    def is_loading(self) -> bool:
        return bool(self.loading)

    # -- primary device -------------------------------------------------------

    def load_device_types(self) -> None:
        self._request(DEVICE_TYPES, self._catalog.list_device_types, self.view.set_device_types)

    def select_type(self, type_id: Optional[str]) -> None:
        self._select_type(PRIMARY, type_id)

    def select_brand(self, brand_id: Optional[str]) -> None:
        self._select_brand(PRIMARY, brand_id)

    def select_model(self, model_id: Optional[str]) -> None:
        device = self.draft.device
        device.set_model(model_id, self.view.model_name(model_id, PRIMARY))
        self._log.info("model_selected", model_id=device.model_id)
        if device.model_id:
            self._load_parts(device.model_id)

    # -- loaned device --------------------------------------------------------

    def set_loaned_device_given(self, given: bool) -> None:
        """Toggle the loaned device; switching it off clears its ids and names."""
        self.draft.is_loaned_device_given = bool(given)
        if given:
            return
        self.draft.loaned_device.clear()
        self._invalidate(_brands_key(LOANED))
        self._invalidate(_models_key(LOANED))
        self.view.clear_brands(LOANED)
        self.view.clear_models(LOANED)
        self._log.info("loaned_device_cleared")

    def select_loaned_type(self, type_id: Optional[str]) -> None:
        self._select_type(LOANED, type_id)

    def select_loaned_brand(self, brand_id: Optional[str]) -> None:
        self._select_brand(LOANED, brand_id)

    def select_loaned_model(self, model_id: Optional[str]) -> None:
        loaned = self.draft.loaned_device
        loaned.set_model(model_id, self.view.model_name(model_id, LOANED))
        self._log.info("loaned_model_selected", model_id=loaned.model_id)

    # -- edit mode ------------------------------------------------------------

    def restore(self) -> None:
        """Reload the option lists behind the ids already present in the draft.

        Used after hydrating a persisted order: ids are kept, names stored on
        the order are kept unless the catalog can supply a current one.
        """
        self.load_device_types()
        for slot, device in ((PRIMARY, self.draft.device), (LOANED, self.draft.loaned_device)):
            if device.type_id:
                self._load_brands(slot, device.type_id)
            if device.type_id and device.brand_id:
                self._load_models(slot, device.type_id, device.brand_id, merge=(slot == LOANED))
        if self.draft.device.model_id:
            self._load_parts(self.draft.device.model_id)
        self._refresh_names()

    # -- internals ------------------------------------------------------------

    def _device(self, slot: str):
        return self.draft.device if slot == PRIMARY else self.draft.loaned_device

    def _select_type(self, slot: str, type_id: Optional[str]) -> None:
        device = self._device(slot)
        device.set_type(type_id, self.view.type_name(type_id))
        self.view.clear_brands(slot)
        self.view.clear_models(slot)
        self._invalidate(_models_key(slot))
        if slot == PRIMARY:
            self._drop_parts()
        self._log.info("type_selected", slot=slot, type_id=device.type_id)
        if device.type_id:
            self._load_brands(slot, device.type_id)
        else:
            self._invalidate(_brands_key(slot))

    def _select_brand(self, slot: str, brand_id: Optional[str]) -> None:
        device = self._device(slot)
        device.set_brand(brand_id, self.view.brand_name(brand_id, slot))
        self.view.clear_models(slot)
        if slot == PRIMARY:
            self._drop_parts()
        self._log.info("brand_selected", slot=slot, brand_id=device.brand_id)
        if device.brand_id:
            self._load_models(slot, device.type_id, device.brand_id)
        else:
            self._invalidate(_models_key(slot))

    def _drop_parts(self) -> None:
        # Parts hang off the model; once the model is cleared by an upstream
        # change they go too. Lines stay and resolve to zero until reloaded.
        self._invalidate(PARTS)
        self.view.clear_parts()

    def _load_brands(self, slot: str, type_id: str) -> None:
        self._request(
            _brands_key(slot),
            lambda: self._catalog.list_brands(type_id),
            lambda records: self.view.set_brands(slot, records, type_id=type_id),
        )

    def _load_models(self, slot: str, type_id: Optional[str], brand_id: str, merge: bool = False) -> None:
        self._request(
            _models_key(slot),
            lambda: self._catalog.list_models(brand_id),
            lambda records: self.view.set_models(slot, records, type_id=type_id, brand_id=brand_id, merge=merge),
        )

    def _load_parts(self, model_id: str) -> None:
        def apply(records: Any) -> None:
            added = self.view.merge_parts(records, model_id=model_id)
            self._log.info("part_catalog_merged", model_id=model_id, added=added)

        self._request(PARTS, lambda: self._catalog.list_parts(model_id), apply)

    def _invalidate(self, key: str) -> None:
        self._generations[key] += 1
        self.loading.discard(key)

    def _request(self, key: str, fetch: Callable[[], Any], apply: Callable[[Any], None]) -> None:
        self._generations[key] += 1
        generation = self._generations[key]
        self.loading.add(key)
        self._log.debug("catalog_fetch_started", request=key, generation=generation)

        try:
            result = fetch()
        except Exception as e:
            self._fail(key, generation, e, apply)
            return

        if isinstance(result, Future):
            result.add_done_callback(lambda fut: self._settle_future(key, generation, fut, apply))
        else:
            self._settle(key, generation, result, apply)

    def _settle_future(self, key: str, generation: int, fut: Future, apply: Callable[[Any], None]) -> None:
        error = fut.exception()
        if error is not None:
            self._fail(key, generation, error, apply)
        else:
            self._settle(key, generation, fut.result(), apply)

    def _is_stale(self, key: str, generation: int) -> bool:
        if generation == self._generations[key]:
            return False
        self._log.info(
            "catalog_response_stale",
            request=key,
            generation=generation,
            current=self._generations[key],
        )
        return True

    def _settle(self, key: str, generation: int, records: Any, apply: Callable[[Any], None]) -> None:
        if self._is_stale(key, generation):
            return
        self.loading.discard(key)
        apply(records or [])
        self._refresh_names()

    def _fail(self, key: str, generation: int, cause: BaseException, apply: Callable[[Any], None]) -> None:
        if self._is_stale(key, generation):
            return
        self.loading.discard(key)
        error = CatalogFetchError(key, cause)
        self.last_error = error
        self._log.error("catalog_fetch_failed", request=key, error=str(cause))
        if key != PARTS:
            apply([])
        if self._on_error is not None:
            self._on_error(error)

    def _refresh_names(self) -> None:
        """Fill in name snapshots for selected ids once their option list arrives."""
        for slot, device in ((PRIMARY, self.draft.device), (LOANED, self.draft.loaned_device)):
            device.type_name = self.view.type_name(device.type_id) or device.type_name
            device.brand_name = self.view.brand_name(device.brand_id, slot) or device.brand_name
            device.model_name = self.view.model_name(device.model_id, slot) or device.model_name
