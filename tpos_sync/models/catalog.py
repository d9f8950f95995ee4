# tpos_sync/models/catalog.py
from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy import String, Integer, DateTime, Float, Boolean, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from tpos_sync.db import Base


class ProductAttribute(Base):
    __tablename__ = "product_attributes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, index=True)  # e.g. "Màu"
    code: Mapped[str | None] = mapped_column(String(32), nullable=True)      # e.g. "Mau"
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tpos_attribute_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    values: Mapped[List["ProductAttributeValue"]] = relationship(back_populates="attribute")


class ProductAttributeValue(Base):
    __tablename__ = "product_attribute_values"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attribute_id: Mapped[int] = mapped_column(ForeignKey("product_attributes.id"), index=True)
    value: Mapped[str] = mapped_column(String(128), index=True)
    code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    price_extra: Mapped[float | None] = mapped_column(Float, nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tpos_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tpos_attribute_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    name_get: Mapped[str | None] = mapped_column(String(256), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    attribute: Mapped[ProductAttribute] = relationship(back_populates="values")


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_code: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    product_name: Mapped[str] = mapped_column(String(256))
    variant: Mapped[str | None] = mapped_column(String(512), nullable=True)  # descriptor text
    selling_price: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    purchase_price: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    base_product_code: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    tpos_product_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # {"attributeLines": [...], "previewVariants": [...]} of the last good sync
    variant_tpos_response: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
