# tpos_sync/sync/components/payload.py
# --------------------------------------------------------------------------------------
# VariantCandidate + product -> full TPOS ProductVariants[] document, and
# AttributeLine -> TPOS AttributeLines[] entry.
#
# Every field of a variant document belongs to exactly one tier:
#   IDENTITY_FIELDS    derived from the candidate and the product name
#   INHERITED_DEFAULTS copied from the parent template when it has a value,
#                      else the default listed here
#   GENERATED_FIELDS   always set by generation (Id=0 means "new")
# --------------------------------------------------------------------------------------
from __future__ import annotations

import copy
import json
import re
from typing import Any, Dict, List, Optional

from tpos_sync.catalog.variant_models import (
    AttributeLine,
    AttributeValue,
    SyncedProductRecord,
    VariantCandidate,
)

IDENTITY_FIELDS = (
    "Name",
    "NameGet",
    "NameTemplate",
    "NameTemplateNoSign",
    "DefaultCode",
    "Barcode",
    "DisplayAttributeValues",
)

INHERITED_DEFAULTS: Dict[str, Any] = {
    "Type": "product",
    "UOMId": 1,
    "UOMPOId": 1,
    "UOM": None,
    "UOMPO": None,
    "CategId": 2,
    "Categ": None,
    "POSCategId": None,
    "SaleOK": True,
    "PurchaseOK": True,
    "AvailableInPOS": True,
    "InvoicePolicy": "order",
    "PurchaseMethod": "receive",
    "Tracking": None,
    "CostMethod": None,
    "PropertyCostMethod": None,
    "PropertyValuation": None,
    "Valuation": None,
    "TaxesIds": [],
    "Weight": 0,
    "Volume": None,
    "SaleDelay": 0,
    "CompanyId": None,
    "CreatedById": None,
}

# Set directly, never inherited. Values here are the fixed ones; the rest are
# filled per candidate in assemble_variant_document().
GENERATED_FIELDS: Dict[str, Any] = {
    "Id": 0,
    "ProductTmplId": None,
    "PriceVariant": 0,
    "ListPrice": 0,
    "StandardPrice": 0,
    "PurchasePrice": None,
    "Active": True,
    "Version": 0,
    "AttributeValues": [],
    "Image": None,
    "ImageUrl": None,
    "Thumbnails": [],
    "EAN13": None,
    "NameNoSign": None,
    "UOMName": None,
    "QtyAvailable": 0,
    "VirtualAvailable": 0,
    "OutgoingQty": None,
    "IncomingQty": None,
    "Price": None,
    "LstPrice": 0,
    "DiscountSale": None,
    "DiscountPurchase": None,
    "OldPrice": None,
    "IsDiscount": False,
    "ProductTmplEnableAll": False,
    "Description": None,
    "LastUpdated": None,
    "DateCreated": None,
    "Variant_TeamId": 0,
    "IsCombo": None,
    "StockValue": None,
    "SaleValue": None,
    "PosSalesCount": None,
    "Factor": None,
    "CategName": None,
    "AmountTotal": None,
    "NameCombos": [],
    "RewardName": None,
    "Product_UOMId": None,
    "Tags": None,
    "InitInventory": None,
    "OrderTag": "",
    "StringExtraProperties": json.dumps({"OrderTag": None, "Thumbnails": []}),
    "TaxAmount": None,
    "Error": None,
    "POSCateg": None,
}

VARIANT_DOCUMENT_FIELDS = IDENTITY_FIELDS + tuple(INHERITED_DEFAULTS) + tuple(GENERATED_FIELDS)

_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.I)


def clean_base64(image: Optional[str]) -> Optional[str]:
    """Strip a data-URL prefix and whitespace; None/empty stays None."""
    if not image:
        return None
    cleaned = _DATA_URL_RE.sub("", image.strip(), count=1)
    if "," in cleaned:
        cleaned = cleaned.split(",", 1)[1]
    cleaned = re.sub(r"\s", "", cleaned)
    return cleaned or None


def value_payload(value: AttributeValue) -> Dict[str, Any]:
    attr_name = value.attribute.name
    return {
        "Id": value.remote_id,
        "Name": value.name,
        "Code": value.code or value.name,
        "Sequence": value.sequence,
        "AttributeId": value.attribute_remote_id,
        "AttributeName": attr_name,
        "PriceExtra": value.price_extra,
        "NameGet": value.name_get or f"{attr_name}: {value.name}",
        "DateCreated": None,
    }


def attribute_line_payload(line: AttributeLine, template_id: int) -> Dict[str, Any]:
    attr = line.attribute
    return {
        "Id": 0,
        "ProductTmplId": template_id,
        "AttributeId": attr.remote_id,
        "Attribute": {
            "Id": attr.remote_id,
            "Name": attr.name,
            "Code": attr.code,
            "Sequence": attr.sequence,
            "CreateVariant": True,
        },
        "Values": [value_payload(v) for v in line.values],
    }


def _inherit(base: Optional[Dict[str, Any]], field: str, default: Any) -> Any:
    if base:
        if field == "TaxesIds" and base.get("TaxesIds") is None and isinstance(base.get("Taxes"), list):
            return [t["Id"] for t in base["Taxes"] if isinstance(t, dict) and t.get("Id") is not None]
        if base.get(field) is not None:
            return copy.deepcopy(base[field])
    return copy.deepcopy(default)


def assemble_variant_document(
    candidate: VariantCandidate,
    product: SyncedProductRecord,
    template_id: int,
    base_template: Optional[Dict[str, Any]] = None,
    image: Optional[str] = None,
) -> Dict[str, Any]:
    """
    One complete ProductVariants[] entry. `base_template` is the parent
    ProductTemplate snapshot (as fetched from TPOS) used for inheritable fields.
    """
    product_name = product.product_name
    name = f"{product_name} ({candidate.name})" if candidate.name else product_name
    attribute_values = [value_payload(v) for v in candidate.values]

    doc: Dict[str, Any] = {
        "Name": name,
        "NameGet": f"[{candidate.code}] {name}",
        "NameTemplate": product_name,
        "NameTemplateNoSign": product_name,
        "DefaultCode": candidate.code,
        "Barcode": candidate.code,
        "DisplayAttributeValues": ", ".join(f"{av['AttributeName']}: {av['Name']}" for av in attribute_values),
    }

    for field, default in INHERITED_DEFAULTS.items():
        doc[field] = _inherit(base_template, field, default)

    doc.update(copy.deepcopy(GENERATED_FIELDS))
    price = float(product.selling_price or 0)
    doc.update({
        "ProductTmplId": template_id,
        "PriceVariant": price,
        "ListPrice": price,
        "PurchasePrice": float(product.purchase_price) if product.purchase_price else None,
        "AttributeValues": attribute_values,
        "Image": clean_base64(image),
    })
    return doc


def assemble_variant_documents(
    candidates: List[VariantCandidate],
    product: SyncedProductRecord,
    template_id: int,
    base_template: Optional[Dict[str, Any]] = None,
    image: Optional[str] = None,
) -> List[Dict[str, Any]]:
    return [
        assemble_variant_document(c, product, template_id, base_template=base_template, image=image)
        for c in candidates
    ]
