# tpos_sync/catalog/attribute_catalog.py
# --------------------------------------------------------------------------------------
# Curated in-process catalog of the three fixed TPOS attributes (text size, colour,
# numeric size) with their TPOS ids, plus a case-normalising name lookup.
# Used by the flat "M, L, Đen, 28" descriptor form; the parenthesized form goes to
# the relational store instead.
# --------------------------------------------------------------------------------------
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from tpos_sync.catalog.variant_models import Attribute, AttributeValue


class AttributeValueMapping:
    """
    Fast lookup from attribute value name to AttributeValue row.
    """
    def __init__(self, normalize_case=True):
        self.by_name: Dict[str, AttributeValue] = {}
        self.normalize_case = normalize_case

    def _norm(self, s):
        if s is None: return None
        s = str(s).strip()
        if self.normalize_case:
            s = s.lower()
        return s

    def add(self, value: AttributeValue):
        name_n = self._norm(value.name)
        if not name_n:
            return
        self.by_name.setdefault(name_n, value)

    def get(self, name) -> Optional[AttributeValue]:
        return self.by_name.get(self._norm(name))

    def values(self) -> List[AttributeValue]:
        return list(self.by_name.values())

    def __contains__(self, name):
        return self._norm(name) in self.by_name

    def __len__(self):
        return len(self.by_name)


SIZE_TEXT_ATTRIBUTE_ID = 1
COLOR_ATTRIBUTE_ID = 3
SIZE_NUMBER_ATTRIBUTE_ID = 4

SIZE_TEXT = Attribute(name="Size Chữ", remote_id=SIZE_TEXT_ATTRIBUTE_ID, code="SZCh", sequence=1)
COLOR = Attribute(name="Màu", remote_id=COLOR_ATTRIBUTE_ID, code="Mau", sequence=2)
SIZE_NUMBER = Attribute(name="Size Số", remote_id=SIZE_NUMBER_ATTRIBUTE_ID, code="SZNu", sequence=3)

# (TPOS value id, name, code)
_SIZE_TEXT_ROWS: List[Tuple[int, str, str]] = [
    (5, "Free Size", "FS"),
    (1, "S", "S"),
    (2, "M", "M"),
    (3, "L", "L"),
    (4, "XL", "XL"),
    (31, "XXL", "xxl"),
    (32, "XXXL", "xxxl"),
]

_COLOR_ROWS: List[Tuple[int, str, str]] = [
    (6, "Trắng", "trang"),
    (7, "Đen", "den"),
    (8, "Đỏ", "do"),
    (9, "Vàng", "vang"),
    (10, "Cam", "cam"),
    (11, "Xám", "xam"),
    (12, "Hồng", "hong"),
    (14, "Nude", "nude"),
    (15, "Nâu", "nau"),
    (16, "Rêu", "reu"),
    (17, "Xanh", "xanh"),
    (25, "Bạc", "bac"),
    (26, "Tím", "tim"),
    (27, "Xanh Min", "xanhmin"),
    (28, "Trắng Kem", "trangkem"),
    (29, "Xanh Lá", "xanhla"),
    (38, "Cổ Vịt", "co vit"),
    (40, "Xanh Đậu", "xanh dau"),
    (42, "Tím Môn", "timmon"),
    (43, "Muối Tiêu", "muoitieu"),
    (45, "Kem", "kem"),
    (47, "Hồng Đậm", "hongdam"),
    (49, "Ghi", "ghi"),
    (50, "Xanh Mạ", "xanhma"),
    (51, "Vàng Đồng", "vangdong"),
    (52, "Xanh Bơ", "xanhbo"),
    (53, "Xanh Đen", "xanhden"),
    (54, "Xanh CoBan", "xanhcoban"),
    (55, "Xám Đậm", "xamdam"),
    (56, "Xám Nhạt", "xamnhat"),
    (57, "Xanh Dương", "xanhduong"),
    (58, "Cam Sữa", "camsua"),
    (59, "Hồng Nhạt", "hongnhat"),
    (60, "Đậm", "dam"),
    (61, "Nhạt", "nhat"),
    (62, "Xám Khói", "xamkhoi"),
    (63, "Xám Chuột", "xamchuot"),
    (64, "Xám Đen", "xamden"),
    (65, "Xám Trắng", "xamtrang"),
    (66, "Xanh Đậm", "xanhdam"),
    (67, "Sọc Đen", "socden"),
    (68, "Sọc Trắng", "soctrang"),
    (69, "Sọc Xám", "socxam"),
    (70, "Jean Trắng", "jeantrang"),
    (71, "Jean Xanh", "jeanxanh"),
    (72, "Cam Đất", "camdat"),
    (73, "Nâu Đậm", "naudam"),
    (74, "Nâu Nhạt", "naunhat"),
    (75, "Đỏ Tươi", "dotuoi"),
    (76, "Đen Vàng", "denvang"),
    (77, "Cà Phê", "caphe"),
    (78, "Đen Bạc", "denbac"),
    (79, "Bò", "bo"),
    (82, "Sọc Xanh", "socxanh"),
    (83, "Xanh Rêu", "xanhreu"),
    (84, "Hồng Ruốc", "hongruoc"),
    (85, "Hồng Dâu", "hongdau"),
    (86, "Xanh Nhạt", "xanhnhat"),
    (87, "Xanh Ngọc", "xanhngoc"),
    (88, "Caro", "caro"),
    (89, "Sọc Hồng", "sochong"),
    (90, "Trong", "trong"),
    (95, "Trắng Hồng", "tranghong"),
    (96, "Trắng Sáng", "trangsang"),
    (97, "Đỏ Đô", "dodo"),
    (98, "Cam Đào", "camdao"),
    (99, "Cam Lạnh", "camlanh"),
    (100, "Hồng Đào", "hongdao"),
    (101, "Hồng Đất", "hongdat"),
    (102, "Tím Đậm", "timdam"),
]

_SIZE_NUMBER_ROWS: List[Tuple[int, str, str]] = [
    (22, "1", "1"),
    (23, "2", "2"),
    (24, "3", "3"),
    (48, "4", "4"),
    (80, "27", "27"),
    (81, "28", "28"),
    (18, "29", "29"),
    (19, "30", "30"),
    (20, "31", "31"),
    (21, "32", "32"),
    (46, "34", "34"),
    (33, "35", "35"),
    (34, "36", "36"),
    (35, "37", "37"),
    (36, "38", "38"),
    (37, "39", "39"),
    (44, "40", "40"),
    (91, "41", "41"),
    (92, "42", "42"),
    (93, "43", "43"),
    (94, "44", "44"),
]


def _build(attribute: Attribute, rows: Iterable[Tuple[int, str, str]], normalize_case: bool) -> AttributeValueMapping:
    mapping = AttributeValueMapping(normalize_case=normalize_case)
    for seq, (remote_id, name, code) in enumerate(rows, start=1):
        mapping.add(AttributeValue(
            name=name,
            attribute=attribute,
            code=code,
            remote_id=remote_id,
            sequence=seq,
            name_get=f"{attribute.name}: {name}",
        ))
    return mapping


SIZE_TEXT_VALUES = _build(SIZE_TEXT, _SIZE_TEXT_ROWS, normalize_case=True)
COLOR_VALUES = _build(COLOR, _COLOR_ROWS, normalize_case=True)
# numeric sizes match exactly
SIZE_NUMBER_VALUES = _build(SIZE_NUMBER, _SIZE_NUMBER_ROWS, normalize_case=False)


def catalog_attributes() -> List[Attribute]:
    """The three fixed attributes, in classification priority order."""
    return [SIZE_TEXT, COLOR, SIZE_NUMBER]
