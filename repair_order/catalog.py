"""Catalog service contract and the read-only view of what has been loaded.

The view keeps separate brand/model option lists for the primary device and
the loaned device, so the two cascades never disturb each other. Device
types are shared. Parts accumulate: a fetch for a new model is merged into
the parts already loaded instead of replacing them, which keeps earlier
part lines resolvable while the user moves between models.
"""

from collections.abc import Iterable, Sequence
from concurrent.futures import Future
from typing import Any, Optional, Protocol, Union

from .config import DEFAULT_LOCALES
from .helpers import display_name
from .models import CatalogEntry, Part

PRIMARY = "primary"
LOANED = "loaned"
SLOTS = (PRIMARY, LOANED)

CatalogResult = Union[Sequence[Any], Future]


class CatalogService(Protocol):
    """Device/part catalog collaborator.

    Each call returns the records directly, or a Future resolving to them
    when the transport is asynchronous. Records carry an ``isActive`` flag;
    inactive records are filtered out by the view.
    """

    def list_device_types(self) -> CatalogResult: ...

    def list_brands(self, type_id: str) -> CatalogResult: ...

    def list_models(self, brand_id: str) -> CatalogResult: ...

    def list_parts(self, model_id: str) -> CatalogResult: ...


class PartCatalogView:
    """Currently loaded device types, brands, models and parts."""

    def __init__(self, locales: Sequence[str] = DEFAULT_LOCALES):
        self.locales = tuple(locales)
        self.device_types: list[CatalogEntry] = []
        self._brands: dict[str, list[CatalogEntry]] = {slot: [] for slot in SLOTS}
        self._models: dict[str, list[CatalogEntry]] = {slot: [] for slot in SLOTS}
        self._parts: dict[str, Part] = {}

    # -- loading --------------------------------------------------------------

    def set_device_types(self, records: Iterable[Any]) -> None:
        self.device_types = [e for e in map(CatalogEntry.from_api, records) if e.is_active]

    def set_brands(self, slot: str, records: Iterable[Any], type_id: Optional[str] = None) -> None:
        self._brands[slot] = [
            e
            for e in map(CatalogEntry.from_api, records)
            if e.is_active and (e.device_type_id is None or type_id is None or e.device_type_id == type_id)
        ]

    def set_models(
        self,
        slot: str,
        records: Iterable[Any],
        type_id: Optional[str] = None,
        brand_id: Optional[str] = None,
        merge: bool = False,
    ) -> None:
        fresh = [
            e
            for e in map(CatalogEntry.from_api, records)
            if e.is_active
            and (e.device_type_id is None or type_id is None or e.device_type_id == type_id)
            and (e.brand_id is None or brand_id is None or e.brand_id == brand_id)
        ]
        if not merge:
            self._models[slot] = fresh
            return
        known = {e.id for e in self._models[slot]}
        self._models[slot].extend(e for e in fresh if e.id not in known)

    def clear_brands(self, slot: str) -> None:
        self._brands[slot] = []

    def clear_models(self, slot: str) -> None:
        self._models[slot] = []

    def merge_parts(self, records: Iterable[Any], model_id: Optional[str] = None) -> int:
        """Add active parts for ``model_id`` that are not loaded yet; returns how many were added."""
        added = 0
        for part in map(Part.from_api, records):
            if not part.is_active or not part.id:
                continue
            if model_id is not None and part.model_id is not None and part.model_id != model_id:
                continue
            if part.id in self._parts:
                continue
            self._parts[part.id] = part
            added += 1
        return added

    def clear_parts(self) -> None:
        self._parts.clear()

    # -- reading --------------------------------------------------------------

    def brands(self, slot: str = PRIMARY) -> list[CatalogEntry]:
        return list(self._brands[slot])

    def models(self, slot: str = PRIMARY) -> list[CatalogEntry]:
        return list(self._models[slot])

    def parts(self) -> list[Part]:
        return list(self._parts.values())

    def part_options(self, model_id: Optional[str]) -> list[Part]:
        """Parts offered for the current model selection."""
        if not model_id:
            return []
        return [p for p in self._parts.values() if p.model_id in (None, model_id)]

    def find_part(self, part_id: Optional[str]) -> Optional[Part]:
        if not part_id:
            return None
        return self._parts.get(part_id)

    def type_name(self, type_id: Optional[str]) -> str:
        return self._name_in(self.device_types, type_id)

    def brand_name(self, brand_id: Optional[str], slot: str = PRIMARY) -> str:
        return self._name_in(self._brands[slot], brand_id)

    def model_name(self, model_id: Optional[str], slot: str = PRIMARY) -> str:
        return self._name_in(self._models[slot], model_id)

    def part_name(self, part: Optional[Part]) -> str:
        if part is None:
            return ""
        return display_name(part.name, self.locales)

    def _name_in(self, entries: Iterable[CatalogEntry], entry_id: Optional[str]) -> str:
        if not entry_id:
            return ""
        for entry in entries:
            if entry.id == entry_id:
                return display_name(entry.name, self.locales)
        return ""
