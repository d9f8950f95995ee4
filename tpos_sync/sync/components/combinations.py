# tpos_sync/sync/components/combinations.py
from __future__ import annotations

import itertools
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from tpos_sync.catalog.attribute_catalog import (
    COLOR,
    COLOR_ATTRIBUTE_ID,
    SIZE_NUMBER,
    SIZE_NUMBER_ATTRIBUTE_ID,
    SIZE_TEXT,
    SIZE_TEXT_ATTRIBUTE_ID,
)
from tpos_sync.catalog.variant_models import AttributeLine, AttributeValue, VariantCandidate

_COLLISION_RE = re.compile(r"1+$")
DEFAULT_BASE_CODE = "PRODUCT"


def _is_kind(value: AttributeValue, remote_id: int, name: str) -> bool:
    return value.attribute_remote_id == remote_id or value.attribute.name == name


def _code_fragment(value: AttributeValue) -> str:
    """Numeric codes stay whole ('28'); anything else contributes its first letter, upper-cased."""
    raw = (value.code or value.name or "").strip()
    if not raw:
        return ""
    if raw.isdigit():
        return raw
    return raw[0].upper()


def derive_code(base_code: str, values: Sequence[AttributeValue], existing_codes: Set[str]) -> str:
    """
    base code + one fragment per value, in line order.
    Numeric-size-only variants get an "A" after the base code.
    A code already in `existing_codes` gets "1", then "11", "111"... appended.
    The returned code is added to `existing_codes`.
    """
    has_size_text = any(_is_kind(v, SIZE_TEXT_ATTRIBUTE_ID, SIZE_TEXT.name) for v in values)
    has_color = any(_is_kind(v, COLOR_ATTRIBUTE_ID, COLOR.name) for v in values)
    has_size_number = any(_is_kind(v, SIZE_NUMBER_ATTRIBUTE_ID, SIZE_NUMBER.name) for v in values)

    code = base_code
    if has_size_number and not has_size_text and not has_color:
        code += "A"
    code += "".join(_code_fragment(v) for v in values)

    final = code
    ones = 0
    while final in existing_codes:
        ones += 1
        final = code + "1" * ones
    existing_codes.add(final)
    return final


def has_code_collision(code: str, base_code: str) -> bool:
    """True when the part after the base code ends in a run of '1's (the dedupe suffix)."""
    suffix = code[len(base_code):] if base_code and code.startswith(base_code) else code
    return bool(_COLLISION_RE.search(suffix))


def generate_variant_candidates(
    lines: Sequence[AttributeLine],
    base_code: Optional[str] = None,
) -> List[VariantCandidate]:
    """
    Cartesian expansion of the attribute lines, first line varying slowest:
        [L1{a,b}, L2{x,y}] -> (a,x), (a,y), (b,x), (b,y)
    No lines, or any line without values, yields no candidates.
    """
    if not lines or any(not line.values for line in lines):
        return []

    base = base_code or DEFAULT_BASE_CODE
    existing: Set[str] = set()
    out: List[VariantCandidate] = []
    for combo in itertools.product(*(line.values for line in lines)):
        code = derive_code(base, combo, existing)
        out.append(VariantCandidate(
            values=tuple(combo),
            name=", ".join(v.name for v in combo),
            code=code,
            base_code=base,
            has_collision=has_code_collision(code, base),
        ))
    return out


def _signature(attribute_values: Iterable[Dict[str, Any]]) -> str:
    ids = sorted(int(av["Id"]) for av in attribute_values or [] if isinstance(av, dict) and av.get("Id") is not None)
    return ",".join(str(i) for i in ids)


def compare_variants(
    expected: List[Dict[str, Any]],
    actual: List[Dict[str, Any]],
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Match variant documents by the set of their AttributeValues ids.
    Returns {"matches": [...], "missing": [...], "extra": [...]} of {"code", "name"}.
    """
    actual_by_sig: Dict[str, Dict[str, Any]] = {}
    for v in actual or []:
        sig = _signature(v.get("AttributeValues"))
        if sig:
            actual_by_sig[sig] = v

    matches, missing = [], []
    for v in expected or []:
        entry = {"code": v.get("DefaultCode"), "name": v.get("Name") or v.get("NameGet")}
        sig = _signature(v.get("AttributeValues"))
        if sig and sig in actual_by_sig:
            matches.append(entry)
            del actual_by_sig[sig]
        else:
            missing.append(entry)

    extra = [{"code": v.get("DefaultCode"), "name": v.get("Name")} for v in actual_by_sig.values()]
    return {"matches": matches, "missing": missing, "extra": extra}
