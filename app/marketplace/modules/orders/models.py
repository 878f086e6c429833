from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.marketplace.constants import ORDER_STATUS_PENDING
from app.marketplace.models import Base

if TYPE_CHECKING:
    from app.marketplace.models import User
    from app.marketplace.modules.products.models import Product


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_buyer_id", "buyer_id"),
        Index("idx_orders_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    buyer_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[int | None] = mapped_column(ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    volume: Mapped[int] = mapped_column(Integer, nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    ico: Mapped[str | None] = mapped_column(String(32), nullable=True)  # buyer's company registration number
    date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=ORDER_STATUS_PENDING)  # Pending, Approved, Rejected, Cancelled

    buyer: Mapped["User"] = relationship("User", back_populates="orders", foreign_keys=[buyer_id], lazy="selectin")
    product: Mapped["Product | None"] = relationship("Product", back_populates="orders", lazy="selectin")
