"""
Storage contract tests.

Every test here runs twice: once against SqlAlchemyStore (SQLite in-memory)
and once against MemoryStore, through the parametrised `store` fixture.
"""

from decimal import Decimal

import pytest

from stockroom.storage import ProductQuery, STOCK_STATUSES, classify_stock_status
from stockroom.validation import ConflictError


def _category(store, name="Electronics"):
    return store.create_category({"name": name, "description": f"{name} things"})


def _product(store, category_id, sku, **overrides):
    data = {
        "sku": sku,
        "name": f"Product {sku}",
        "description": None,
        "price": Decimal("10.00"),
        "stock_quantity": 0,
        "min_stock_level": 0,
        "category_id": category_id,
    }
    data.update(overrides)
    return store.create_product(data)


def _user(store, email="someone@example.com", name="Someone"):
    return store.create_user({"email": email, "name": name, "password_hash": "x"})


# =============================================================================
# RECORD SHAPE
# =============================================================================


class TestRecordShape:

    def test_records_carry_string_id(self, store):
        category = _category(store)
        product = _product(store, category["id"], "SKU-1")
        user = _user(store)

        for record in (category, product, user):
            assert "_id" in record
            assert isinstance(record["id"], str)
            assert str(record["_id"]) == record["id"]

    def test_reference_fields_are_strings(self, store):
        category = _category(store)
        product = _product(store, category["id"], "SKU-1")
        user = _user(store)
        movement = store.create_stock_movement({
            "product_id": product["id"], "user_id": user["id"],
            "type": "in", "quantity": 3, "reason": "Restock",
        })

        assert product["category_id"] == category["id"]
        assert movement["product_id"] == product["id"]
        assert movement["user_id"] == user["id"]

    def test_timestamps_are_utc_strings(self, store):
        category = _category(store)
        assert category["created_at"].endswith("Z")
        assert category["updated_at"].endswith("Z")

    def test_product_price_is_float(self, store):
        category = _category(store)
        product = _product(store, category["id"], "SKU-1", price=Decimal("19.99"))
        assert product["price"] == pytest.approx(19.99)


# =============================================================================
# LOOKUPS
# =============================================================================


class TestLookups:

    @pytest.mark.parametrize("bad_id", ["", "not-an-id", "999999", "mem_999999", "-1", "1.5", "99999999999999999999"])
    def test_unknown_ids_return_none(self, store, bad_id):
        assert store.get_product(bad_id) is None
        assert store.get_category(bad_id) is None
        assert store.get_user(bad_id) is None
        assert store.update_product(bad_id, {"name": "x"}) is None
        assert store.update_category(bad_id, {"name": "x"}) is None
        assert store.delete_product(bad_id) is False
        assert store.delete_category(bad_id) is False
        assert store.get_stock_movements(bad_id) == []

    def test_get_user_by_email_and_external_id(self, store):
        user = store.create_user({
            "email": "fed@example.com", "name": "Fed", "external_id": "google:fed@example.com",
            "provider": "google",
        })

        assert store.get_user_by_email("fed@example.com")["id"] == user["id"]
        assert store.get_user_by_external_id("google:fed@example.com")["id"] == user["id"]
        assert store.get_user_by_external_id("") is None
        assert store.get_user_by_email("nobody@example.com") is None

    def test_user_defaults(self, store):
        user = _user(store)
        assert user["role"] == "user"
        assert user["provider"] == "local"

    def test_categories_sorted_by_name(self, store):
        for name in ("Sports", "Books", "Clothing"):
            _category(store, name)
        assert [c["name"] for c in store.get_categories()] == ["Books", "Clothing", "Sports"]


# =============================================================================
# UNIQUENESS
# =============================================================================


class TestUniqueness:

    def test_duplicate_sku_conflicts(self, store):
        category = _category(store)
        _product(store, category["id"], "DUP")
        with pytest.raises(ConflictError):
            _product(store, category["id"], "DUP")

    def test_update_to_taken_sku_conflicts(self, store):
        category = _category(store)
        _product(store, category["id"], "A")
        b = _product(store, category["id"], "B")
        with pytest.raises(ConflictError):
            store.update_product(b["id"], {"sku": "A"})

    def test_update_keeping_own_sku_is_allowed(self, store):
        category = _category(store)
        a = _product(store, category["id"], "A")
        updated = store.update_product(a["id"], {"sku": "A", "name": "Renamed"})
        assert updated["name"] == "Renamed"

    def test_duplicate_category_name_conflicts(self, store):
        _category(store, "Books")
        with pytest.raises(ConflictError):
            _category(store, "Books")

    def test_duplicate_email_conflicts(self, store):
        _user(store, "same@example.com")
        with pytest.raises(ConflictError):
            _user(store, "same@example.com")


# =============================================================================
# QUERY / FILTER ENGINE
# =============================================================================


@pytest.fixture
def catalog(store):
    """2 categories, 3 products: stock 0/5/20 with min levels 0/10/10."""
    tools = _category(store, "Tools")
    toys = _category(store, "Toys")
    empty = _product(store, tools["id"], "EMPTY-1", name="Hammer", stock_quantity=0, min_stock_level=0)
    low = _product(
        store, tools["id"], "LOW-1", name="Screwdriver", stock_quantity=5, min_stock_level=10,
        description="Flathead screwdriver",
    )
    full = _product(store, toys["id"], "FULL-1", name="Yo-yo", stock_quantity=20, min_stock_level=10)
    return {"tools": tools, "toys": toys, "empty": empty, "low": low, "full": full}


class TestProductQuery:

    @pytest.mark.parametrize("status,key", [
        ("out_of_stock", "empty"),
        ("low_stock", "low"),
        ("in_stock", "full"),
    ])
    def test_status_filter_scenario(self, store, catalog, status, key):
        result = store.get_products(ProductQuery(status=status))
        assert [p["id"] for p in result["items"]] == [catalog[key]["id"]]
        assert result["total"] == 1

    def test_status_partition_is_exhaustive(self, store, catalog):
        everything = store.get_products(ProductQuery(limit=100))
        by_status = {
            status: {p["id"] for p in store.get_products(ProductQuery(status=status, limit=100))["items"]}
            for status in STOCK_STATUSES
        }

        all_ids = {p["id"] for p in everything["items"]}
        assert set().union(*by_status.values()) == all_ids
        assert sum(len(ids) for ids in by_status.values()) == len(all_ids)
        for product in everything["items"]:
            status = classify_stock_status(product["stock_quantity"], product["min_stock_level"])
            assert product["id"] in by_status[status]

    @pytest.mark.parametrize("query_kwargs", [
        {},
        {"search": "screw"},
        {"search": "SKU-DOES-NOT-EXIST"},
        {"status": "in_stock"},
        {"status": "low_stock"},
        {"category_id": "__tools__"},
        {"category_id": "__tools__", "status": "out_of_stock"},
        {"category_id": "__toys__", "search": "yo"},
    ])
    def test_total_independent_of_pagination(self, store, catalog, query_kwargs):
        kwargs = dict(query_kwargs)
        if kwargs.get("category_id") == "__tools__":
            kwargs["category_id"] = catalog["tools"]["id"]
        elif kwargs.get("category_id") == "__toys__":
            kwargs["category_id"] = catalog["toys"]["id"]

        full = store.get_products(ProductQuery(limit=100, **kwargs))
        assert full["total"] == len(full["items"])

        for page in (1, 2, 3):
            paged = store.get_products(ProductQuery(page=page, limit=1, **kwargs))
            assert paged["total"] == full["total"]
            assert len(paged["items"]) <= 1

    def test_search_matches_name_sku_and_description(self, store, catalog):
        by_name = store.get_products(ProductQuery(search="HAMMER"))
        by_sku = store.get_products(ProductQuery(search="full-1"))
        by_description = store.get_products(ProductQuery(search="flathead"))

        assert [p["id"] for p in by_name["items"]] == [catalog["empty"]["id"]]
        assert [p["id"] for p in by_sku["items"]] == [catalog["full"]["id"]]
        assert [p["id"] for p in by_description["items"]] == [catalog["low"]["id"]]

    def test_search_folds_non_ascii_case(self, store, catalog):
        pastry = _product(
            store, catalog["toys"]["id"], "PASTRY-1", name="ÉCLAIR AU CAFÉ", description="Crème pâtissière",
        )

        for term in ("éclair", "Café", "CRÈME"):
            result = store.get_products(ProductQuery(search=term))
            assert [p["id"] for p in result["items"]] == [pastry["id"]], term

    def test_search_treats_wildcards_literally(self, store, catalog):
        assert store.get_products(ProductQuery(search="%"))["total"] == 0
        assert store.get_products(ProductQuery(search="_"))["total"] == 0

    def test_category_filter(self, store, catalog):
        result = store.get_products(ProductQuery(category_id=catalog["tools"]["id"]))
        assert {p["id"] for p in result["items"]} == {catalog["empty"]["id"], catalog["low"]["id"]}

    def test_unknown_category_filter_is_empty(self, store, catalog):
        result = store.get_products(ProductQuery(category_id="nope"))
        assert result == {"items": [], "total": 0}

    def test_out_of_range_category_filter_is_empty(self, store, catalog):
        result = store.get_products(ProductQuery(category_id="99999999999999999999"))
        assert result == {"items": [], "total": 0}

    def test_newest_first(self, store, catalog):
        result = store.get_products(ProductQuery(limit=100))
        assert [p["id"] for p in result["items"]] == [
            catalog["full"]["id"], catalog["low"]["id"], catalog["empty"]["id"],
        ]

    def test_pages_do_not_overlap(self, store, catalog):
        first = store.get_products(ProductQuery(page=1, limit=2))["items"]
        second = store.get_products(ProductQuery(page=2, limit=2))["items"]
        assert len(first) == 2
        assert len(second) == 1
        assert not {p["id"] for p in first} & {p["id"] for p in second}

    def test_items_carry_category(self, store, catalog):
        result = store.get_products(ProductQuery(category_id=catalog["toys"]["id"]))
        assert result["items"][0]["category"]["name"] == "Toys"
        assert result["items"][0]["category"]["id"] == catalog["toys"]["id"]


# =============================================================================
# SOFT REFERENCES
# =============================================================================


class TestSoftReferences:

    def test_deleted_category_resolves_to_placeholder(self, store):
        category = _category(store, "Doomed")
        product = _product(store, category["id"], "ORPHAN")

        assert store.delete_category(category["id"]) is True

        fetched = store.get_product(product["id"])
        assert fetched["category"]["name"] == "Unknown"
        listed = store.get_products(ProductQuery())
        assert listed["items"][0]["category"]["name"] == "Unknown"

    def test_deleted_product_activity_uses_placeholders(self, store):
        category = _category(store)
        product = _product(store, category["id"], "GONE")
        user = _user(store)
        store.create_stock_movement({
            "product_id": product["id"], "user_id": user["id"],
            "type": "out", "quantity": 1, "reason": None,
        })
        store.delete_product(product["id"])

        activity = store.get_recent_activity()
        assert activity[0]["product_name"] == "Unknown Product"
        assert activity[0]["product_sku"] == "Unknown"
        assert activity[0]["user_name"] == "Someone"


# =============================================================================
# STOCK MOVEMENTS
# =============================================================================


class TestStockMovements:

    def test_movements_newest_first_and_scoped_to_product(self, store):
        category = _category(store)
        a = _product(store, category["id"], "A")
        b = _product(store, category["id"], "B")
        user = _user(store)

        first = store.create_stock_movement({
            "product_id": a["id"], "user_id": user["id"], "type": "in", "quantity": 5, "reason": "first",
        })
        store.create_stock_movement({
            "product_id": b["id"], "user_id": user["id"], "type": "in", "quantity": 1, "reason": "other",
        })
        second = store.create_stock_movement({
            "product_id": a["id"], "user_id": user["id"], "type": "out", "quantity": 2, "reason": "second",
        })

        movements = store.get_stock_movements(a["id"])
        assert [m["id"] for m in movements] == [second["id"], first["id"]]

    def test_store_never_generates_movements(self, store):
        category = _category(store)
        product = _product(store, category["id"], "A", stock_quantity=25)
        store.update_product(product["id"], {"stock_quantity": 3})
        assert store.get_stock_movements(product["id"]) == []


# =============================================================================
# DASHBOARD
# =============================================================================


class TestDashboard:

    def test_empty_store(self, store):
        assert store.get_dashboard_stats() == {
            "total_products": 0,
            "low_stock_items": 0,
            "total_value": "0.00",
            "total_categories": 0,
        }

    def test_stats(self, store, catalog):
        store.update_product(catalog["low"]["id"], {"price": Decimal("19.99")})
        stats = store.get_dashboard_stats()

        assert stats["total_products"] == 3
        assert stats["total_categories"] == 2
        # zero stock counts as low stock on the dashboard
        assert stats["low_stock_items"] == 2
        # 0 * 10.00 + 5 * 19.99 + 20 * 10.00
        assert stats["total_value"] == "299.95"

    def test_stats_idempotent(self, store, catalog):
        assert store.get_dashboard_stats() == store.get_dashboard_stats()

    def test_recent_activity_limit_and_order(self, store):
        category = _category(store)
        product = _product(store, category["id"], "A")
        user = _user(store, name="Stocker")
        created = [
            store.create_stock_movement({
                "product_id": product["id"], "user_id": user["id"],
                "type": "in", "quantity": n, "reason": f"batch {n}",
            })
            for n in range(1, 13)
        ]

        activity = store.get_recent_activity()
        assert len(activity) == 10
        assert activity[0]["id"] == created[-1]["id"]
        assert activity[0] == {
            "id": created[-1]["id"],
            "type": "in",
            "product_id": product["id"],
            "product_name": "Product A",
            "product_sku": "A",
            "quantity": 12,
            "reason": "batch 12",
            "user_name": "Stocker",
            "created_at": created[-1]["created_at"],
        }
        assert len(store.get_recent_activity(limit=3)) == 3
