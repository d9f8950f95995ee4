import pytest

from tpos_sync.catalog.attribute_catalog import (
    COLOR_VALUES,
    SIZE_NUMBER_VALUES,
    SIZE_TEXT_VALUES,
    catalog_attributes,
)
from tpos_sync.errors import MISSING_MAPPING, UNMATCHED
from tpos_sync.sync.components.attributes import (
    format_descriptor,
    parse_parenthesized_tokens,
    resolve_descriptor,
    resolve_descriptor_report,
    resolve_from_catalog,
)
from conftest import BLUE, RED, SIZE_M


def test_parse_parenthesized_tokens():
    assert parse_parenthesized_tokens("(Red | Blue | Size M)") == ["Red", "Blue", "Size M"]
    assert parse_parenthesized_tokens("( | Red |   )") == ["Red"]
    # only the first group is read
    assert parse_parenthesized_tokens("(S | M) (Đen)") == ["S", "M"]
    assert parse_parenthesized_tokens("") == []
    assert parse_parenthesized_tokens(None) == []


def test_catalog_lookup_is_case_insensitive_for_text():
    assert SIZE_TEXT_VALUES.get("m") is SIZE_TEXT_VALUES.get("M")
    assert COLOR_VALUES.get(" đen ").name == "Đen"
    assert "28" in SIZE_NUMBER_VALUES
    assert [a.remote_id for a in catalog_attributes()] == [1, 3, 4]
    assert len(SIZE_TEXT_VALUES) == 7
    assert [v.name for v in SIZE_TEXT_VALUES.values()][:3] == ["Free Size", "S", "M"]


@pytest.mark.asyncio
async def test_flat_descriptor_uses_catalog_priority():
    lines = await resolve_descriptor("M, L, Đen, 28")
    assert [l.attribute.name for l in lines] == ["Size Chữ", "Màu", "Size Số"]
    assert [[v.name for v in l.values] for l in lines] == [["M", "L"], ["Đen"], ["28"]]


@pytest.mark.asyncio
async def test_flat_descriptor_line_order_ignores_token_order():
    lines = await resolve_descriptor("28, Đen, M")
    assert [l.attribute.remote_id for l in lines] == [1, 3, 4]


def test_flat_descriptor_drops_unknown_tokens():
    report = resolve_from_catalog("M, Sparkly, m")
    assert len(report.lines) == 1
    assert [v.name for v in report.lines[0].values] == ["M"]
    assert report.unmatched == ["Sparkly"]


@pytest.mark.asyncio
async def test_parenthesized_descriptor_groups_by_remote_attribute(fake_store):
    lines = await resolve_descriptor("(Red | Blue | Size M)", fake_store)
    assert [l.attribute.remote_id for l in lines] == [3, 1]
    assert lines[0].values == [RED, BLUE]
    assert lines[1].values == [SIZE_M]


@pytest.mark.asyncio
async def test_parenthesized_line_order_follows_first_mention(fake_store):
    lines = await resolve_descriptor("(size m | red)", fake_store)
    assert [l.attribute.name for l in lines] == ["Size Chữ", "Màu"]


@pytest.mark.asyncio
async def test_unmapped_and_unknown_values_are_dropped(fake_store):
    report = await resolve_descriptor_report("(Red | Green | Purple | Nope)", fake_store)
    assert len(report.lines) == 1
    assert report.lines[0].values == [RED]
    assert report.unmapped == ["Green"]
    # inactive values never match
    assert report.unmatched == ["Purple", "Nope"]
    assert (("Green", MISSING_MAPPING) in report.dropped) and (("Nope", UNMATCHED) in report.dropped)


@pytest.mark.asyncio
async def test_empty_descriptor_resolves_to_nothing(fake_store):
    assert await resolve_descriptor("", fake_store) == []
    assert await resolve_descriptor("   ") == []
    assert await resolve_descriptor(None) == []


@pytest.mark.asyncio
async def test_parenthesized_descriptor_needs_a_store():
    with pytest.raises(ValueError):
        await resolve_descriptor("(Red)")


@pytest.mark.asyncio
async def test_format_descriptor():
    lines = await resolve_descriptor("S, M, Đen, Trắng")
    assert format_descriptor(lines) == "(S | M) (Đen | Trắng)"
    assert format_descriptor([]) == ""
