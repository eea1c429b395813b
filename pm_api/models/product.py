"""Product master tables."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pm_api.models.base import Base
from pm_api.core.time import utc_now


class ProductMaster(Base):
    """A sellable product."""
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)

    scan_codes: Mapped[List["ProductScanCode"]] = relationship(
        "ProductScanCode", back_populates="product"
    )
    goods_product: Mapped[Optional["GoodsProduct"]] = relationship(
        "GoodsProduct", back_populates="product", uselist=False
    )


class ProductGroup(Base):
    """A named grouping of products."""
    __tablename__ = "product_groups"

    product_group_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ProductScanCode(Base):
    """UPCs tied to a product. At most one is the primary."""
    __tablename__ = "product_scan_codes"

    upc: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("products.product_id"), nullable=False, index=True
    )
    primary_upc: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    product: Mapped["ProductMaster"] = relationship("ProductMaster", back_populates="scan_codes")


class GoodsProduct(Base):
    """Goods-specific attributes of a product."""
    __tablename__ = "goods_products"

    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("products.product_id"), primary_key=True, autoincrement=False
    )
    vertex_tax_category: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    self_manufactured: Mapped[str] = mapped_column(String(1), nullable=False, default="N")
    last_update_user_id: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    last_update_ts: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_system_update_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    product: Mapped["ProductMaster"] = relationship("ProductMaster", back_populates="goods_product")
