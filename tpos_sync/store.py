#===========================================================================
# tpos_sync/store.py
# Relational store used by the variant sync engine:
#   - active attribute values by text (case-insensitive exact)
#   - product records by product code
#   - newest credential per token type
#   - saved-response persistence and attribute catalog import
#===========================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from tpos_sync.catalog.variant_models import (
    Attribute,
    AttributeValue,
    Credential,
    SyncedProductRecord,
)
from tpos_sync.models.catalog import Product, ProductAttribute, ProductAttributeValue
from tpos_sync.models.credentials import TposCredential

logger = logging.getLogger("uvicorn.error")


def _fold(text: Optional[str]) -> str:
    return (text or "").strip().casefold()


class CatalogStore(Protocol):
    async def find_attribute_values(self, names: List[str]) -> List[AttributeValue]: ...
    async def get_product(self, product_code: str) -> Optional[SyncedProductRecord]: ...
    async def latest_credential(self, token_type: str) -> Optional[Credential]: ...
    async def save_variant_response(self, product_code: str, saved: Dict[str, Any]) -> bool: ...


def _to_attribute(row: ProductAttribute) -> Attribute:
    return Attribute(
        name=row.name,
        remote_id=row.tpos_attribute_id,
        code=row.code,
        sequence=row.display_order,
        id=row.id,
    )


def _to_value(row: ProductAttributeValue) -> AttributeValue:
    attribute = _to_attribute(row.attribute)
    # value-level tpos_attribute_id wins: it is what TPOS groups the value under
    if row.tpos_attribute_id is not None and row.tpos_attribute_id != attribute.remote_id:
        attribute = Attribute(
            name=attribute.name,
            remote_id=row.tpos_attribute_id,
            code=attribute.code,
            sequence=attribute.sequence,
            id=attribute.id,
        )
    return AttributeValue(
        name=row.value,
        attribute=attribute,
        code=row.code,
        remote_id=row.tpos_id,
        sequence=row.display_order,
        price_extra=row.price_extra,
        name_get=row.name_get,
        active=row.is_active,
        id=row.id,
    )


def _to_record(row: Product) -> SyncedProductRecord:
    return SyncedProductRecord(
        product_code=row.product_code,
        product_name=row.product_name,
        selling_price=float(row.selling_price or 0),
        purchase_price=float(row.purchase_price or 0),
        variant=row.variant,
        base_product_code=row.base_product_code,
        tpos_product_id=row.tpos_product_id,
        saved_response=row.variant_tpos_response,
    )


class SqlCatalogStore:
    """CatalogStore over the async SQLAlchemy session factory."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def find_attribute_values(self, names: List[str]) -> List[AttributeValue]:
        wanted = {_fold(n) for n in names} - {""}
        if not wanted:
            return []
        # Case folding happens here, not in SQL: SQLite lower() only folds ASCII (Đen vs đen)
        stmt = (
            select(ProductAttributeValue)
            .options(selectinload(ProductAttributeValue.attribute))
            .where(ProductAttributeValue.is_active.is_(True))
            .order_by(ProductAttributeValue.display_order, ProductAttributeValue.id)
        )
        async with self._sessionmaker() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_value(r) for r in rows if _fold(r.value) in wanted]

    async def get_product(self, product_code: str) -> Optional[SyncedProductRecord]:
        """Parent product row: product_code matches and it is its own base (or has none)."""
        stmt = (
            select(Product)
            .where(Product.product_code == product_code)
            .where(or_(Product.base_product_code.is_(None), Product.base_product_code == product_code))
        )
        async with self._sessionmaker() as session:
            row = (await session.execute(stmt)).scalars().first()
            return _to_record(row) if row else None

    async def latest_credential(self, token_type: str) -> Optional[Credential]:
        stmt = (
            select(TposCredential)
            .where(TposCredential.token_type == token_type)
            .where(TposCredential.bearer_token.is_not(None))
            .order_by(TposCredential.created_at.desc(), TposCredential.id.desc())
            .limit(1)
        )
        async with self._sessionmaker() as session:
            row = (await session.execute(stmt)).scalars().first()
            if row is None:
                return None
            return Credential(token=row.bearer_token, token_type=row.token_type, created_at=row.created_at)

    async def save_variant_response(self, product_code: str, saved: Dict[str, Any]) -> bool:
        async with self._sessionmaker() as session:
            row = (await session.execute(
                select(Product).where(Product.product_code == product_code)
            )).scalars().first()
            if row is None:
                logger.warning("[DB] save_variant_response: product %s not found", product_code)
                return False
            row.variant_tpos_response = saved
            await session.commit()
            return True

    async def import_attribute_values(self, values: Iterable[AttributeValue]) -> Dict[str, int]:
        """
        Upsert attributes (by name) and their values (by attribute + case-insensitive text).
        Returns {"attributes_created", "values_created", "values_updated"}.
        """
        stats = {"attributes_created": 0, "values_created": 0, "values_updated": 0}
        async with self._sessionmaker() as session:
            attrs: Dict[str, ProductAttribute] = {
                a.name: a for a in (await session.execute(select(ProductAttribute))).scalars().all()
            }
            for v in values:
                attr = attrs.get(v.attribute.name)
                if attr is None:
                    attr = ProductAttribute(
                        name=v.attribute.name,
                        code=v.attribute.code,
                        display_order=v.attribute.sequence or 0,
                        tpos_attribute_id=v.attribute.remote_id,
                    )
                    session.add(attr)
                    await session.flush()
                    attrs[attr.name] = attr
                    stats["attributes_created"] += 1

                siblings = (await session.execute(
                    select(ProductAttributeValue).where(ProductAttributeValue.attribute_id == attr.id)
                )).scalars().all()
                existing = next((r for r in siblings if _fold(r.value) == _fold(v.name)), None)
                if existing is None:
                    session.add(ProductAttributeValue(
                        attribute_id=attr.id,
                        value=v.name,
                        code=v.code,
                        price_extra=v.price_extra,
                        display_order=v.sequence or 0,
                        tpos_id=v.remote_id,
                        tpos_attribute_id=v.attribute.remote_id,
                        name_get=v.name_get,
                        is_active=v.active,
                    ))
                    stats["values_created"] += 1
                else:
                    existing.code = v.code
                    existing.tpos_id = v.remote_id
                    existing.tpos_attribute_id = v.attribute.remote_id
                    existing.name_get = v.name_get
                    if v.sequence is not None:
                        existing.display_order = v.sequence
                    stats["values_updated"] += 1
            await session.commit()
        logger.info("[DB] attribute import: %s", stats)
        return stats
