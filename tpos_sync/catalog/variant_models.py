from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Attribute:
    name: str
    remote_id: Optional[int] = None   # TPOS AttributeId
    code: Optional[str] = None        # e.g. "Mau"
    sequence: Optional[int] = None
    id: Optional[int] = None          # local row id


@dataclass(frozen=True)
class AttributeValue:
    name: str
    attribute: Attribute
    code: Optional[str] = None
    remote_id: Optional[int] = None   # TPOS attribute-value Id
    sequence: Optional[int] = None
    price_extra: Optional[float] = None
    name_get: Optional[str] = None
    active: bool = True
    id: Optional[int] = None

    @property
    def attribute_remote_id(self) -> Optional[int]:
        return self.attribute.remote_id

    @property
    def is_mapped(self) -> bool:
        return self.remote_id is not None and self.attribute.remote_id is not None


@dataclass
class AttributeLine:
    attribute: Attribute
    values: List[AttributeValue] = field(default_factory=list)


@dataclass(frozen=True)
class VariantCandidate:
    values: Tuple[AttributeValue, ...]
    name: str             # "M, Đen"
    code: str             # base code + fragments (+ collision suffix)
    base_code: str
    has_collision: bool

    @property
    def variant_code(self) -> str:
        if self.base_code and self.code.startswith(self.base_code):
            return self.code[len(self.base_code):]
        return self.code


@dataclass
class SyncedProductRecord:
    product_code: str
    product_name: str
    selling_price: float = 0.0
    purchase_price: float = 0.0
    variant: Optional[str] = None
    base_product_code: Optional[str] = None
    tpos_product_id: Optional[int] = None
    saved_response: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Credential:
    token: str
    token_type: str
    created_at: Optional[datetime] = None
