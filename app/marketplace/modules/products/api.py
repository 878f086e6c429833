from __future__ import annotations

from flask import Blueprint, abort

from app.marketplace.db import db_session
from app.marketplace.modules.products.service import (
    create_product,
    get_product,
    list_products,
    product_to_dict,
    validate_product_payload,
)
from app.marketplace.rbac import current_user, require_login
from app.marketplace.utils import json_body

bp = Blueprint("products", __name__)


@bp.get("/products")
def products_list():
    s = db_session()
    return [product_to_dict(p) for p in list_products(s)]


@bp.get("/products/<int:product_id>")
def product_detail(product_id: int):
    s = db_session()
    product = get_product(s, product_id)
    if not product:
        abort(404, description="Product does not exist!")
    return product_to_dict(product)


@bp.post("/products")
@require_login
def product_create():
    s = db_session()
    payload = json_body()

    errors = validate_product_payload(payload)
    if errors:
        abort(400, description=" ".join(errors))

    product = create_product(s, payload, current_user())
    s.commit()
    return product_to_dict(product), 200
