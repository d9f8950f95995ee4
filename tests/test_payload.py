from tpos_sync.catalog.attribute_catalog import COLOR, COLOR_VALUES, SIZE_TEXT, SIZE_TEXT_VALUES
from tpos_sync.catalog.variant_models import AttributeLine
from tpos_sync.sync.components.combinations import generate_variant_candidates
from tpos_sync.sync.components.payload import (
    GENERATED_FIELDS,
    IDENTITY_FIELDS,
    INHERITED_DEFAULTS,
    VARIANT_DOCUMENT_FIELDS,
    assemble_variant_document,
    assemble_variant_documents,
    attribute_line_payload,
    clean_base64,
)

LINES = [
    AttributeLine(attribute=SIZE_TEXT, values=[SIZE_TEXT_VALUES.get("M")]),
    AttributeLine(attribute=COLOR, values=[COLOR_VALUES.get("Đen")]),
]


def _candidate():
    return generate_variant_candidates(LINES, "NTEST")[0]


def test_field_tiers_are_disjoint():
    identity, inherited, generated = set(IDENTITY_FIELDS), set(INHERITED_DEFAULTS), set(GENERATED_FIELDS)
    assert not identity & inherited
    assert not identity & generated
    assert not inherited & generated
    assert len(VARIANT_DOCUMENT_FIELDS) == len(set(VARIANT_DOCUMENT_FIELDS))


def test_document_sets_every_field_once(product):
    doc = assemble_variant_document(_candidate(), product, 42)
    assert set(doc) == set(VARIANT_DOCUMENT_FIELDS)


def test_identity_and_generated_fields(product):
    doc = assemble_variant_document(_candidate(), product, 42)
    assert doc["Name"] == "Áo Test (M, Đen)"
    assert doc["NameGet"] == "[NTESTMD] Áo Test (M, Đen)"
    assert doc["DefaultCode"] == doc["Barcode"] == "NTESTMD"
    assert doc["DisplayAttributeValues"] == "Size Chữ: M, Màu: Đen"
    assert doc["Id"] == 0
    assert doc["ProductTmplId"] == 42
    assert doc["PriceVariant"] == doc["ListPrice"] == 150000.0
    assert doc["PurchasePrice"] == 90000.0
    assert doc["Active"] is True
    assert doc["Version"] == 0
    assert [av["Id"] for av in doc["AttributeValues"]] == [2, 7]
    assert doc["AttributeValues"][1]["AttributeId"] == 3


def test_defaults_without_base_template(product):
    doc = assemble_variant_document(_candidate(), product, 42)
    assert doc["SaleOK"] is True and doc["PurchaseOK"] is True
    assert doc["InvoicePolicy"] == "order"
    assert doc["PurchaseMethod"] == "receive"
    assert doc["UOMId"] == 1 and doc["CategId"] == 2
    assert doc["TaxesIds"] == []


def test_inherits_non_null_template_values(product):
    base = {"UOMId": 5, "CategId": None, "SaleOK": False, "Taxes": [{"Id": 9}, {"Name": "no id"}]}
    doc = assemble_variant_document(_candidate(), product, 42, base_template=base)
    assert doc["UOMId"] == 5
    assert doc["CategId"] == 2
    assert doc["SaleOK"] is False
    assert doc["TaxesIds"] == [9]


def test_documents_do_not_share_default_containers(product):
    docs = assemble_variant_documents(generate_variant_candidates(LINES, "NTEST") * 2, product, 42)
    docs[0]["TaxesIds"].append(1)
    docs[0]["Thumbnails"].append("x")
    assert docs[1]["TaxesIds"] == [] and INHERITED_DEFAULTS["TaxesIds"] == []
    assert docs[1]["Thumbnails"] == [] and GENERATED_FIELDS["Thumbnails"] == []


def test_image_is_cleaned(product):
    doc = assemble_variant_document(_candidate(), product, 42, image="data:image/png;base64,AB C\nD")
    assert doc["Image"] == "ABCD"
    assert clean_base64(None) is None
    assert clean_base64("   ") is None


def test_attribute_line_payload():
    payload = attribute_line_payload(LINES[1], 42)
    assert payload["ProductTmplId"] == 42
    assert payload["AttributeId"] == 3
    assert payload["Attribute"]["Code"] == "Mau"
    assert payload["Values"] == [{
        "Id": 7,
        "Name": "Đen",
        "Code": "den",
        "Sequence": 2,
        "AttributeId": 3,
        "AttributeName": "Màu",
        "PriceExtra": None,
        "NameGet": "Màu: Đen",
        "DateCreated": None,
    }]
