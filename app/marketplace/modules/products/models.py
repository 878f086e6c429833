from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.marketplace.models import Base

if TYPE_CHECKING:
    from app.marketplace.models import User
    from app.marketplace.modules.orders.models import Order


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("idx_products_name", "name"),
        Index("idx_products_seller_id", "seller_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    unit: Mapped[str | None] = mapped_column(String(32), nullable=True)  # e.g. "kg", "t", "pcs"

    seller_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    seller: Mapped["User"] = relationship("User", back_populates="products")
    # No delete cascade: orders outlive the product with product_id nulled.
    orders: Mapped[list["Order"]] = relationship("Order", back_populates="product")
