from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.marketplace.audit import record_event
from app.marketplace.constants import ORDER_STATUS_PENDING, ORDER_STATUSES
from app.marketplace.utils import clean_str, isoformat, parse_positive_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.marketplace.models import User
    from app.marketplace.modules.orders.models import Order
    from app.marketplace.modules.products.models import Product

logger = logging.getLogger(__name__)

# Fields a buyer may set on create/patch. Buyer, product and date are fixed by the server.
ORDER_PATCH_FIELDS = ("volume", "comments", "ico", "status")


class OrderNotPendingError(Exception):
    """Order has left Pending and can no longer be changed."""


def order_to_dict(order: "Order", *, include_buyer: bool = True) -> dict:
    from app.marketplace.modules.users.service import user_to_dict

    data: dict[str, Any] = {
        "id": order.id,
        "volume": order.volume,
        "comments": order.comments,
        "ico": order.ico,
        "date": isoformat(order.date),
        "status": order.status,
        "buyer_id": order.buyer_id,
        "product_id": order.product_id,
    }
    if include_buyer:
        data["buyer"] = user_to_dict(order.buyer) if order.buyer else None
    return data


def validate_order_payload(payload: dict, *, partial: bool = False) -> list[str]:
    """Validate order create/patch payload. Returns list of errors."""
    errors: list[str] = []
    if not partial or "volume" in payload:
        if parse_positive_int(payload.get("volume")) is None:
            errors.append("Volume must be a positive whole number.")
    for field in ("comments", "ico"):
        value = payload.get(field)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (str, int))):
            errors.append(f"{field} must be a string.")
    ico = clean_str(payload.get("ico"))
    if ico and len(ico) > 32:
        errors.append("ico must be at most 32 characters.")
    if partial and "status" in payload and payload.get("status") not in ORDER_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}")
    return errors


def list_orders(s: "Session") -> list["Order"]:
    from app.marketplace.modules.orders.models import Order

    return s.query(Order).order_by(Order.id.asc()).all()


def list_orders_for_buyer(s: "Session", buyer: "User") -> list["Order"]:
    from app.marketplace.modules.orders.models import Order

    return s.query(Order).filter(Order.buyer_id == buyer.id).order_by(Order.id.asc()).all()


def get_order(s: "Session", order_id: int, *, for_update: bool = False) -> "Order | None":
    from app.marketplace.modules.orders.models import Order

    if for_update:
        # Row lock on Postgres; sqlite ignores FOR UPDATE.
        return s.get(Order, order_id, with_for_update=True)
    return s.get(Order, order_id)


def create_order(s: "Session", product: "Product", payload: dict, buyer: "User") -> "Order":
    """Create a Pending order for `buyer` against `product`."""
    from app.marketplace.modules.orders.models import Order

    order = Order(
        volume=parse_positive_int(payload.get("volume")),
        comments=clean_str(payload.get("comments")),
        ico=clean_str(payload.get("ico")),
        date=datetime.utcnow(),
        status=ORDER_STATUS_PENDING,
        buyer=buyer,
        product=product,
    )
    s.add(order)
    s.flush()

    record_event(
        s,
        actor=buyer,
        action="order.create",
        entity_type="Order",
        entity_id=str(order.id),
        metadata={"product_id": product.id, "volume": order.volume},
    )
    logger.info("Order created: order_id=%s buyer_id=%s product_id=%s", order.id, buyer.id, product.id)
    return order


def patch_order(s: "Session", order: "Order", payload: dict, actor: "User") -> "Order":
    """
    Merge supplied fields into a Pending order.
    Raises OrderNotPendingError (order untouched) for any other status.
    """
    if order.status != ORDER_STATUS_PENDING:
        raise OrderNotPendingError(order.status)

    changes: dict[str, Any] = {}
    for field in ORDER_PATCH_FIELDS:
        if field not in payload:
            continue
        if field == "volume":
            new_value: Any = parse_positive_int(payload["volume"])
        elif field == "status":
            new_value = payload["status"]
        else:
            new_value = clean_str(payload[field])
        old_value = getattr(order, field)
        if new_value != old_value:
            changes[field] = {"old": old_value, "new": new_value}
            setattr(order, field, new_value)

    record_event(
        s,
        actor=actor,
        action="order.edit",
        entity_type="Order",
        entity_id=str(order.id),
        metadata={"changes": changes},
    )
    return order
