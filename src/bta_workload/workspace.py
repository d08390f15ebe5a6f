"""
Wiring shared by the CLI and the API: which catalog is active, and loading
and saving the session state through data_io.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from .catalog import build_index, load_base_catalog, normalize_catalog
from .config import Config, get_config
from .data_io import load_catalog_override, load_state_blob, save_state_blob
from .schema import CatalogActivity, CatalogItem
from .state import WorkloadState, default_state, normalize_stored_state
from .targets import MinimumTargetTable


@dataclass(frozen=True)
class CatalogView:
    """A catalog document with its normalized items and index, built together."""

    document: Dict[str, Any]
    items: List[CatalogItem]
    index: Dict[str, List[CatalogActivity]]
    is_override: bool = False

    @property
    def meta(self) -> Mapping[str, Any]:
        return self.document.get("meta") or {}


def catalog_view(document: Dict[str, Any], *, is_override: bool = False) -> CatalogView:
    items = normalize_catalog(document)
    return CatalogView(
        document=document,
        items=items,
        index=build_index(items),
        is_override=is_override,
    )


def active_catalog(config: Optional[Config] = None) -> CatalogView:
    """The admin override when one is stored, otherwise the built-in catalog."""
    override = load_catalog_override(config)
    if override is not None:
        return catalog_view(override, is_override=True)
    return catalog_view(load_base_catalog())


def load_state(targets: MinimumTargetTable, config: Optional[Config] = None) -> WorkloadState:
    cfg = config or get_config()
    state = normalize_stored_state(load_state_blob(cfg), targets, cfg.period_settings)
    if state is None:
        logger.debug("No stored state, starting empty")
        return default_state(targets, cfg.period_settings)
    return state


def save_state(state: WorkloadState, config: Optional[Config] = None) -> None:
    save_state_blob(state.to_dict(), config)
