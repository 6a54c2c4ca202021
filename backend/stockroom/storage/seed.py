# Overview: Demo catalog used by the fallback store and `flask system seed`.

from __future__ import annotations

from decimal import Decimal

from ..validation import ConflictError
from .base import InventoryStore

DEMO_CATEGORIES = [
    {"name": "Electronics", "description": "Electronic devices and components"},
    {"name": "Clothing", "description": "Apparel and fashion items"},
    {"name": "Home & Garden", "description": "Home improvement and garden supplies"},
    {"name": "Sports", "description": "Sports equipment and accessories"},
    {"name": "Books", "description": "Books and educational materials"},
]

# category is looked up by name once the categories exist
DEMO_PRODUCTS = [
    {
        "name": "iPhone 13",
        "sku": "IPHONE13-128",
        "description": "Apple iPhone 13 with 128GB storage",
        "price": Decimal("699.99"),
        "stock_quantity": 25,
        "min_stock_level": 5,
        "category": "Electronics",
    },
    {
        "name": "MacBook Pro",
        "sku": "MBP-M1-512",
        "description": "MacBook Pro with M1 chip and 512GB SSD",
        "price": Decimal("1299.99"),
        "stock_quantity": 8,
        "min_stock_level": 3,
        "category": "Electronics",
    },
    {
        "name": "Wireless Headphones",
        "sku": "WH-1000XM4",
        "description": "Sony WH-1000XM4 Noise Canceling Headphones",
        "price": Decimal("249.99"),
        "stock_quantity": 15,
        "min_stock_level": 10,
        "category": "Electronics",
    },
    {
        "name": "T-Shirt Cotton",
        "sku": "TSHIRT-COT-M",
        "description": "Premium cotton t-shirt medium size",
        "price": Decimal("29.99"),
        "stock_quantity": 50,
        "min_stock_level": 20,
        "category": "Clothing",
    },
    {
        "name": "Basketball",
        "sku": "BALL-BASK-OFF",
        "description": "Official size basketball",
        "price": Decimal("39.99"),
        "stock_quantity": 22,
        "min_stock_level": 10,
        "category": "Sports",
    },
]


def seed_demo_catalog(store: InventoryStore) -> tuple[int, int]:
    """
    Insert the demo categories and products into store.

    Idempotent: rows whose name / SKU already exist are skipped.
    Returns (categories_created, products_created).
    """
    categories_created = 0
    for category in DEMO_CATEGORIES:
        try:
            store.create_category(dict(category))
            categories_created += 1
        except ConflictError:
            continue

    category_ids = {c["name"]: c["id"] for c in store.get_categories()}

    products_created = 0
    for product in DEMO_PRODUCTS:
        data = {k: v for k, v in product.items() if k != "category"}
        data["category_id"] = category_ids[product["category"]]
        try:
            store.create_product(data)
            products_created += 1
        except ConflictError:
            continue

    return categories_created, products_created
