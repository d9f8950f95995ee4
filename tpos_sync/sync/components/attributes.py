# tpos_sync/sync/components/attributes.py
# Free-text variant descriptor -> ordered AttributeLines.
#   "(Đỏ | Xanh | Size M)"  -> relational lookup, grouped by TPOS attribute id
#   "M, L, Đen, 28"         -> curated catalog, fixed matcher priority
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from tpos_sync.catalog.attribute_catalog import (
    COLOR_VALUES,
    SIZE_NUMBER_VALUES,
    SIZE_TEXT_VALUES,
)
from tpos_sync.catalog.variant_models import AttributeLine, AttributeValue
from tpos_sync.errors import MISSING_MAPPING, UNMATCHED
from tpos_sync.store import CatalogStore

logger = logging.getLogger("uvicorn.error")

_PAREN_RE = re.compile(r"\((.*?)\)")


@dataclass
class ResolutionReport:
    lines: List[AttributeLine] = field(default_factory=list)
    # (token, kind) for every dropped token, kind in {UNMATCHED, MISSING_MAPPING}
    dropped: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def unmatched(self) -> List[str]:
        return [t for t, kind in self.dropped if kind == UNMATCHED]

    @property
    def unmapped(self) -> List[str]:
        return [t for t, kind in self.dropped if kind == MISSING_MAPPING]


def is_parenthesized(descriptor: str | None) -> bool:
    return bool(descriptor and _PAREN_RE.search(descriptor))


def parse_parenthesized_tokens(descriptor: str | None) -> List[str]:
    """'(Đỏ | Xanh | Size M)' -> ['Đỏ', 'Xanh', 'Size M']; only the first group is read."""
    if not descriptor or not descriptor.strip():
        return []
    m = _PAREN_RE.search(descriptor)
    if not m:
        return []
    return [t.strip() for t in m.group(1).split("|") if t.strip()]


def parse_flat_tokens(descriptor: str | None) -> List[str]:
    if not descriptor or not descriptor.strip():
        return []
    return [t.strip() for t in descriptor.split(",") if t.strip()]


def _lines_in_first_seen_order(values: List[AttributeValue]) -> List[AttributeLine]:
    lines: Dict[int, AttributeLine] = {}
    for v in values:
        key = v.attribute_remote_id
        if key not in lines:
            lines[key] = AttributeLine(attribute=v.attribute, values=[])
        if v not in lines[key].values:
            lines[key].values.append(v)
    return list(lines.values())


async def resolve_from_store(descriptor: str | None, store: CatalogStore) -> ResolutionReport:
    """
    Parenthesized form. Each token is matched case-insensitively against active
    attribute values; rows come back in descriptor token order so the line order is
    the order in which each TPOS attribute is first mentioned. Values without a TPOS
    attribute/value id are dropped.
    """
    report = ResolutionReport()
    tokens = parse_parenthesized_tokens(descriptor)
    if not tokens:
        return report

    rows = await store.find_attribute_values(tokens)
    by_text: Dict[str, List[AttributeValue]] = {}
    for row in rows:
        by_text.setdefault(row.name.strip().casefold(), []).append(row)

    resolved: List[AttributeValue] = []
    for token in tokens:
        matches = by_text.get(token.casefold())
        if not matches:
            report.dropped.append((token, UNMATCHED))
            continue
        mapped = [m for m in matches if m.is_mapped]
        if not mapped:
            report.dropped.append((token, MISSING_MAPPING))
            continue
        resolved.extend(mapped)

    report.lines = _lines_in_first_seen_order(resolved)
    if report.dropped:
        logger.debug("[VARIANTS] dropped descriptor tokens: %s", report.dropped)
    return report


# Classification priority for the flat form: text size, then colour, then numeric size.
CATALOG_MATCHERS: List[Tuple[str, Callable[[str], Optional[AttributeValue]]]] = [
    ("size_text", SIZE_TEXT_VALUES.get),
    ("color", COLOR_VALUES.get),
    ("size_number", SIZE_NUMBER_VALUES.get),
]


def resolve_from_catalog(descriptor: str | None) -> ResolutionReport:
    """
    Flat comma form. Each token goes to the first matcher that knows it; lines are
    emitted in matcher order whatever order the tokens came in.
    """
    report = ResolutionReport()
    buckets: Dict[str, List[AttributeValue]] = {name: [] for name, _ in CATALOG_MATCHERS}
    for token in parse_flat_tokens(descriptor):
        for name, match in CATALOG_MATCHERS:
            value = match(token)
            if value is not None:
                if value not in buckets[name]:
                    buckets[name].append(value)
                break
        else:
            report.dropped.append((token, UNMATCHED))

    for name, _ in CATALOG_MATCHERS:
        values = buckets[name]
        if values:
            report.lines.append(AttributeLine(attribute=values[0].attribute, values=values))
    return report


async def resolve_descriptor_report(descriptor: str | None, store: CatalogStore | None = None) -> ResolutionReport:
    if is_parenthesized(descriptor):
        if store is None:
            raise ValueError("a CatalogStore is required for parenthesized descriptors")
        return await resolve_from_store(descriptor, store)
    return resolve_from_catalog(descriptor)


async def resolve_descriptor(descriptor: str | None, store: CatalogStore | None = None) -> List[AttributeLine]:
    return (await resolve_descriptor_report(descriptor, store)).lines


def format_descriptor(lines: List[AttributeLine]) -> str:
    """[Size{S,M}, Màu{Đen}] -> '(S | M) (Đen)'"""
    groups = []
    for line in lines or []:
        names: List[str] = []
        for v in line.values:
            if v.name not in names:
                names.append(v.name)
        if names:
            groups.append("(" + " | ".join(names) + ")")
    return " ".join(groups)
