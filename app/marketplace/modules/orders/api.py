from __future__ import annotations

from flask import Blueprint, abort, current_app

from app.marketplace.db import db_session
from app.marketplace.models import User
from app.marketplace.modules.orders.service import (
    OrderNotPendingError,
    create_order,
    get_order,
    list_orders,
    list_orders_for_buyer,
    order_to_dict,
    patch_order,
    validate_order_payload,
)
from app.marketplace.modules.products.service import get_product
from app.marketplace.rbac import current_user, require_login
from app.marketplace.utils import json_body

bp = Blueprint("orders", __name__)


def _current_user() -> User:
    u = current_user()
    if not u:
        raise RuntimeError("No current user")
    return u


@bp.get("/orders/all")
@require_login
def orders_all():
    s = db_session()
    return [order_to_dict(o) for o in list_orders(s)], 200


@bp.get("/orders")
@require_login
def orders_mine():
    s = db_session()
    return [order_to_dict(o) for o in list_orders_for_buyer(s, _current_user())]


@bp.get("/orders/<int:order_id>")
@require_login
def order_detail(order_id: int):
    s = db_session()
    order = get_order(s, order_id)
    if not order:
        abort(404, description="Order does not exist!")
    return order_to_dict(order), 200


@bp.post("/products/<int:product_id>/orders")
@require_login
def order_create(product_id: int):
    s = db_session()
    u = _current_user()
    payload = json_body()

    product = get_product(s, product_id)
    if not product:
        abort(404, description="Product does not exist!")

    errors = validate_order_payload(payload)
    if errors:
        abort(400, description=" ".join(errors))

    order = create_order(s, product, payload, u)
    s.commit()
    return order_to_dict(order), 200


@bp.patch("/orders/<int:order_id>")
@require_login
def order_patch(order_id: int):
    s = db_session()
    u = _current_user()
    payload = json_body()

    order = get_order(s, order_id, for_update=True)
    if not order:
        abort(404, description="Order does not exist!")

    errors = validate_order_payload(payload, partial=True)
    if errors:
        abort(400, description=" ".join(errors))

    try:
        order = patch_order(s, order, payload, u)
    except OrderNotPendingError:
        current_app.logger.info("Refused patch of order_id=%s status=%s", order.id, order.status)
        s.rollback()
        abort(400, description="You are not allowed to do this.")
    s.commit()
    return order_to_dict(order), 200
