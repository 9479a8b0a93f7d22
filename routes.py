"""
HTTP routes for both services.

Routes stay thin: they unpack the request, call the entity service held in
``app.state.service`` and pick the status code.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Request, Response
from pydantic import ValidationError as SchemaError

from errors import ValidationError, describe_errors
from schemas import OrderCreate, OrderUpdate, ProductCreate, ProductUpdate, StatusPatch

products = APIRouter(prefix="/api/products", tags=["products"])
orders = APIRouter(prefix="/api/orders", tags=["orders"])


def _ctx(request: Request):
    return request.app.state.service, getattr(request.state, "request_id", "N/A")


# -----------------------------
# PRODUCTS
# -----------------------------
@products.get("")
def list_products(request: Request):
    service, request_id = _ctx(request)
    return service.list(request_id=request_id)


@products.get("/{product_id}")
def get_product(request: Request, product_id: str):
    service, request_id = _ctx(request)
    return service.get(product_id, request_id=request_id)


@products.post("", status_code=201)
def create_product(request: Request, product: ProductCreate):
    service, request_id = _ctx(request)
    return service.create(product, request_id=request_id)


@products.put("/{product_id}")
def update_product(request: Request, product_id: str, changes: ProductUpdate):
    service, request_id = _ctx(request)
    return service.update(product_id, changes, request_id=request_id)


@products.delete("/{product_id}", status_code=204)
def delete_product(request: Request, product_id: str):
    service, request_id = _ctx(request)
    service.delete(product_id, request_id=request_id)
    return Response(status_code=204)


# -----------------------------
# ORDERS
# -----------------------------
@orders.get("")
def list_orders(request: Request):
    service, request_id = _ctx(request)
    return service.list(request_id=request_id)


@orders.get("/customer/{customer_id}")
def list_customer_orders(request: Request, customer_id: str):
    service, request_id = _ctx(request)
    return service.list_by_customer(customer_id, request_id=request_id)


@orders.get("/{order_id}")
def get_order(request: Request, order_id: str):
    service, request_id = _ctx(request)
    return service.get(order_id, request_id=request_id)


@orders.post("", status_code=201)
def create_order(request: Request, order: OrderCreate):
    service, request_id = _ctx(request)
    return service.create(order, request_id=request_id)


@orders.put("/{order_id}")
def update_order(request: Request, order_id: str, changes: OrderUpdate):
    service, request_id = _ctx(request)
    return service.update(order_id, changes, request_id=request_id)


@orders.patch("/{order_id}/status")
def patch_order_status(
    request: Request, order_id: str, body: Optional[Dict[str, Any]] = Body(None)
):
    service, request_id = _ctx(request)
    # unknown ids are reported before a missing or invalid status
    service.get(order_id, request_id=request_id)
    try:
        patch = StatusPatch.model_validate(body or {})
    except SchemaError as e:
        raise ValidationError(describe_errors(e.errors()))
    return service.patch_status(order_id, patch.status, request_id=request_id)


@orders.delete("/{order_id}", status_code=204)
def delete_order(request: Request, order_id: str):
    service, request_id = _ctx(request)
    service.delete(order_id, request_id=request_id)
    return Response(status_code=204)
