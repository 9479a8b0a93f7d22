"""
Request schemas for the catalog and order services.

Fields are snake_case in Python and camelCase on the wire and in MongoDB
(``customer_id`` <-> ``customerId``). Each resource is described by an
``EntityKind`` at the bottom of the module.
"""

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from service import EntityKind, now_iso

OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# PRODUCTS
# -----------------------------
class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field("", description="Product description")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Unit price")
    category: str = Field(..., min_length=1, description="Product category")
    stock: int = Field(0, ge=0, description="Units in stock")


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    category: Optional[str] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)


# -----------------------------
# ORDERS
# -----------------------------
class OrderItem(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class ShippingAddress(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class OrderCreate(CamelModel):
    # status is not accepted here; new orders always start as pending
    customer_id: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(..., min_length=1)
    shipping_address: ShippingAddress = Field(default_factory=ShippingAddress)


class OrderUpdate(CamelModel):
    status: Optional[OrderStatus] = None
    shipping_address: Optional[ShippingAddress] = None


class StatusPatch(CamelModel):
    status: OrderStatus


# -----------------------------
# SAMPLE DATA
# -----------------------------
def sample_products():
    stamp = now_iso()
    seed = [
        ("Laptop", "High-performance laptop for professionals", 999.99, 50),
        ("Smartphone", "Latest smartphone with advanced features", 699.99, 100),
        ("Headphones", "Wireless noise-cancelling headphones", 199.99, 75),
    ]
    return [
        {
            "id": str(uuid.uuid4()),
            "name": name,
            "description": description,
            "price": price,
            "category": "Electronics",
            "stock": stock,
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        for name, description, price, stock in seed
    ]


def sample_orders():
    stamp = now_iso()
    return [
        {
            "id": str(uuid.uuid4()),
            "customerId": "customer-123",
            "items": [{"productId": str(uuid.uuid4()), "quantity": 2}],
            "shippingAddress": {
                "street": "123 Main St",
                "city": "Dhaka",
                "country": "Bangladesh",
            },
            "status": "pending",
            "createdAt": stamp,
            "updatedAt": stamp,
        }
    ]


PRODUCT = EntityKind(
    label="Product",
    collection="products",
    create_model=ProductCreate,
    update_model=ProductUpdate,
    samples=sample_products,
    seed_remote=True,
)

ORDER = EntityKind(
    label="Order",
    collection="orders",
    create_model=OrderCreate,
    update_model=OrderUpdate,
    samples=sample_orders,
    initial_fields={"status": "pending"},
)
