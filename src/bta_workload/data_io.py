"""
Data I/O utilities.

Provides thin helpers to:
- Load/save the session state blob and the admin catalog override as JSON,
  either as local files or in Azure Blob Storage
- Read a catalog document from a local JSON file
- Write report rows as CSV

Dependencies:
- Standard library only for local files.
- For Azure Blob: `azure-storage-blob` package is required.
"""

from __future__ import annotations

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from .config import Config, get_config
from .report import REPORT_FIELDS

try:
    from azure.storage.blob import BlobServiceClient  # type: ignore[import]
except ImportError:  # pragma: no cover - optional dependency
    BlobServiceClient = None  # type: ignore[assignment]


# --- Local JSON helpers ------------------------------------------------------


def read_json_file(path: str) -> Optional[Any]:
    """
    Parse a local JSON file.

    Returns None when the file is missing or cannot be decoded; the caller
    then falls back to defaults.
    """
    file_path = Path(path)
    if not file_path.exists():
        return None
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to load {}: {}", file_path, exc)
        return None


def write_json_file(data: Any, path: str) -> None:
    """Overwrite `path` with `data` as pretty-printed JSON."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


# --- Azure Blob helpers ----------------------------------------------------


def _get_blob_service(config: Optional[Config] = None):
    if BlobServiceClient is None:
        raise ImportError(
            "azure-storage-blob is required for Azure Blob operations. "
            "Install via `pip install azure-storage-blob`."
        )
    cfg = config or get_config()
    if not cfg.azure_blob_connection_string:
        raise ValueError(
            "Azure blob connection string is not configured. "
            "Set BTA_AZURE_BLOB_CONNECTION_STRING or pass Config explicitly."
        )
    return BlobServiceClient.from_connection_string(
        cfg.azure_blob_connection_string
    ), cfg


def _get_blob_client(blob_name: str, config: Optional[Config] = None):
    service_client, cfg = _get_blob_service(config)
    container = cfg.azure_blob_container_name
    if not container:
        raise ValueError(
            "Azure blob container name is not configured. "
            "Set BTA_AZURE_BLOB_CONTAINER_NAME or pass Config explicitly."
        )
    return service_client.get_blob_client(container=container, blob=blob_name)


def read_json_blob(blob_name: str, *, config: Optional[Config] = None) -> Optional[Any]:
    """Download and parse a JSON blob; None when it does not exist or is invalid."""
    blob_client = _get_blob_client(blob_name, config)
    if not blob_client.exists():
        return None
    text = blob_client.download_blob().readall().decode("utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to decode blob {}: {}", blob_name, exc)
        return None


def write_json_blob(data: Any, blob_name: str, *, config: Optional[Config] = None) -> None:
    """Upload `data` as JSON, overwriting the target blob."""
    blob_client = _get_blob_client(blob_name, config)
    payload = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
    blob_client.upload_blob(payload, overwrite=True)


def delete_json_blob(blob_name: str, *, config: Optional[Config] = None) -> None:
    blob_client = _get_blob_client(blob_name, config)
    if blob_client.exists():
        blob_client.delete_blob()


# --- Backend dispatch --------------------------------------------------------


def _load(path: str, config: Config) -> Optional[Any]:
    if config.storage_backend == "azure":
        return read_json_blob(path, config=config)
    return read_json_file(path)


def _save(data: Any, path: str, config: Config) -> None:
    if config.storage_backend == "azure":
        write_json_blob(data, path, config=config)
    else:
        write_json_file(data, path)


def load_state_blob(config: Optional[Config] = None) -> Optional[Any]:
    """Raw stored state; pass it through state.normalize_stored_state."""
    cfg = config or get_config()
    return _load(cfg.state_path, cfg)


def save_state_blob(state: Mapping[str, Any], config: Optional[Config] = None) -> None:
    cfg = config or get_config()
    _save(dict(state), cfg.state_path, cfg)


def load_catalog_override(config: Optional[Config] = None) -> Optional[Dict[str, Any]]:
    """
    The admin catalog, if one was saved.

    A stored document without an `items` list is ignored.
    """
    cfg = config or get_config()
    data = _load(cfg.catalog_override_path, cfg)
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data
    if data is not None:
        logger.warning("Ignoring stored catalog override without items")
    return None


def save_catalog_override(catalog: Mapping[str, Any], config: Optional[Config] = None) -> None:
    cfg = config or get_config()
    _save(dict(catalog), cfg.catalog_override_path, cfg)


def clear_catalog_override(config: Optional[Config] = None) -> None:
    """Drop the admin catalog so the built-in catalog applies again."""
    cfg = config or get_config()
    if cfg.storage_backend == "azure":
        delete_json_blob(cfg.catalog_override_path, config=cfg)
        return
    Path(cfg.catalog_override_path).unlink(missing_ok=True)


# --- CSV reports -------------------------------------------------------------


def report_csv_text(rows: Iterable[Mapping[str, object]], fieldnames: Optional[List[str]] = None) -> str:
    """Encode report rows as CSV text with CRLF line endings."""
    fieldnames = fieldnames or REPORT_FIELDS
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\r\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({key: row.get(key, "") for key in fieldnames})
    return buffer.getvalue()


def write_report_csv(rows: Iterable[Mapping[str, object]], path: str) -> None:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, mode="w", newline="", encoding="utf-8") as f:
        f.write(report_csv_text(rows))
