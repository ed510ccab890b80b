"""Data seeding utilities for the agricultural scheme catalog.

Loads scheme definitions from the bundled ``agri_schemes.json`` file
into validated :class:`~src.models.scheme.Scheme` records and wraps them
in a :class:`~src.services.catalog.SchemeCatalog`.  Designed to run once
at application startup; the catalog is read-only afterwards.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from src.models.scheme import Scheme
from src.services.catalog import SchemeCatalog

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_DATA_DIR: Path = Path(__file__).resolve().parent / "schemes"
_AGRI_SCHEMES_PATH: Path = _DATA_DIR / "agri_schemes.json"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_schemes(path: Path | None = None) -> list[Scheme]:
    """Load agricultural scheme data from a JSON file.

    Entries that fail validation are logged and skipped so one bad row
    does not take the whole catalog down.

    Parameters
    ----------
    path:
        Path to the JSON file.  Defaults to the bundled
        ``agri_schemes.json``.

    Raises
    ------
    FileNotFoundError
        If the JSON file does not exist.
    json.JSONDecodeError
        If the JSON is malformed.
    """
    file_path = path or _AGRI_SCHEMES_PATH

    if not file_path.exists():
        raise FileNotFoundError(f"Scheme data file not found: {file_path}")

    with file_path.open("r", encoding="utf-8") as f:
        raw_schemes: list[dict] = json.load(f)

    schemes: list[Scheme] = []
    for raw in raw_schemes:
        try:
            schemes.append(Scheme.model_validate(raw))
        except ValidationError:
            logger.warning(
                "seed.parse_error",
                scheme_id=raw.get("external_id", raw.get("id", "unknown")),
                exc_info=True,
            )

    logger.info("seed.loaded_schemes", count=len(schemes), source=str(file_path))
    return schemes


def build_catalog(path: Path | None = None) -> SchemeCatalog:
    """Load the scheme file and index it as a :class:`SchemeCatalog`."""
    return SchemeCatalog(load_schemes(path))
