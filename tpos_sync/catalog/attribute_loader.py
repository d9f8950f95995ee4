# tpos_sync/catalog/attribute_loader.py
# --------------------------------------------------------------------------------------
# Attribute/Value/TPOS-id rows from a spreadsheet export (xlsx or csv), used to seed
# product_attribute_values through CatalogStore.import_attribute_values().
# --------------------------------------------------------------------------------------

import os
import logging
from typing import Dict, List, Optional

import pandas as pd

from tpos_sync.catalog.variant_models import Attribute, AttributeValue

logger = logging.getLogger("uvicorn.error")

# canonical column -> header fragments that identify it (checked lower-cased)
_COLUMN_HINTS = {
    "attribute_remote_id": ("tpos attribute id", "attribute id"),
    "remote_id": ("tpos id", "value id"),
    "sequence": ("sequence", "display order"),
    "code": ("code", "abbreviation"),
    "value": ("value",),
    "attribute": ("attribute",),
}


def _detect_columns(columns) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for col in columns:
        low = str(col).strip().lower()
        for key, hints in _COLUMN_HINTS.items():
            if key in found:
                continue
            if any(h in low for h in hints):
                found[key] = col
                break
    return found


def _cell_str(row, col) -> str:
    if not col:
        return ""
    v = row.get(col)
    if v is None or pd.isna(v):
        return ""
    return str(v).strip()


def _cell_int(row, col) -> Optional[int]:
    s = _cell_str(row, col)
    if not s:
        return None
    try:
        return int(float(s))
    except ValueError:
        return None


def load_attribute_catalog(filepath: str) -> List[AttributeValue]:
    """
    Loads an attribute export into AttributeValue rows.

    Recognised headers (any order, case-insensitive, loose match):
        Attribute | Value | Code | TPOS Id | TPOS Attribute Id | Sequence

    Rows without an attribute or a value are skipped. Attributes keep the order in
    which they first appear in the file.
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"File not found: {filepath}")

    if filepath.lower().endswith(".csv"):
        df = pd.read_csv(filepath, dtype=str)
    else:
        df = pd.read_excel(filepath, engine="openpyxl", dtype=str)

    cols = _detect_columns(df.columns)
    if "attribute" not in cols or "value" not in cols:
        raise ValueError(f"{filepath}: need at least 'Attribute' and 'Value' columns, got {list(df.columns)}")

    attributes: Dict[str, Attribute] = {}
    out: List[AttributeValue] = []
    skipped = 0
    for _, row in df.iterrows():
        attr_name = _cell_str(row, cols.get("attribute"))
        value = _cell_str(row, cols.get("value"))
        if not attr_name or not value:
            skipped += 1
            continue
        attr_remote = _cell_int(row, cols.get("attribute_remote_id"))
        if attr_name not in attributes:
            attributes[attr_name] = Attribute(
                name=attr_name,
                remote_id=attr_remote,
                sequence=len(attributes) + 1,
            )
        attribute = attributes[attr_name]
        out.append(AttributeValue(
            name=value,
            attribute=attribute,
            code=_cell_str(row, cols.get("code")) or None,
            remote_id=_cell_int(row, cols.get("remote_id")),
            sequence=_cell_int(row, cols.get("sequence")),
            name_get=f"{attr_name}: {value}",
        ))

    logger.info("[CATALOG] loaded %d attribute values (%d attributes, %d rows skipped) from %s",
                len(out), len(attributes), skipped, filepath)
    return out
