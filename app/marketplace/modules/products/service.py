from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from app.marketplace.audit import record_event
from app.marketplace.utils import clean_str, isoformat

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.marketplace.models import User
    from app.marketplace.modules.products.models import Product

_CENTS = Decimal("0.01")


def parse_price(value: Any) -> Decimal | None:
    """Non-negative price with at most 2 decimals; None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0:
        return None
    if price.as_tuple().exponent < -2:
        return None
    return price


def product_to_dict(product: "Product") -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": str(product.price.quantize(_CENTS)) if product.price is not None else None,
        "unit": product.unit,
        "seller_id": product.seller_id,
        "created_at": isoformat(product.created_at),
    }


def validate_product_payload(payload: dict) -> list[str]:
    errors = []
    name = clean_str(payload.get("name"))
    if not name:
        errors.append("Name is required.")
    elif len(name) > 255:
        errors.append("Name must be at most 255 characters.")
    if parse_price(payload.get("price")) is None:
        errors.append("Price must be a non-negative number with at most 2 decimals.")
    unit = clean_str(payload.get("unit"))
    if unit and len(unit) > 32:
        errors.append("Unit must be at most 32 characters.")
    return errors


def list_products(s: "Session") -> list["Product"]:
    from app.marketplace.modules.products.models import Product

    return s.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(s: "Session", product_id: int) -> "Product | None":
    from app.marketplace.modules.products.models import Product

    return s.get(Product, product_id)


def create_product(s: "Session", payload: dict, seller: "User") -> "Product":
    from app.marketplace.modules.products.models import Product

    product = Product(
        name=clean_str(payload.get("name")),
        description=clean_str(payload.get("description")),
        price=parse_price(payload.get("price")),
        unit=clean_str(payload.get("unit")),
        seller=seller,
    )
    s.add(product)
    s.flush()

    record_event(
        s,
        actor=seller,
        action="product.create",
        entity_type="Product",
        entity_id=str(product.id),
        metadata={"name": product.name, "price": str(product.price)},
    )
    return product
