# Overview: Persistent InventoryStore backed by SQLAlchemy (Flask-SQLAlchemy session).

from __future__ import annotations

from sqlalchemy import and_, event, func, or_, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Category, Product, StockMovement, User
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError
from .aggregation import RECENT_ACTIVITY_LIMIT, activity_entry, dashboard_stats
from .base import InventoryStore
from .query import IN_STOCK, LOW_STOCK, OUT_OF_STOCK, UNKNOWN_CATEGORY, ProductQuery

USER_MUTABLE_FIELDS = {"email", "password_hash", "name", "role", "external_id", "provider"}
CATEGORY_MUTABLE_FIELDS = {"name", "description"}
PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "description", "price", "stock_quantity",
    "min_stock_level", "category_id", "image_url",
}
MOVEMENT_FIELDS = {"product_id", "user_id", "type", "quantity", "reason"}
REFERENCE_FIELDS = {"category_id", "product_id", "user_id"}

# Integer columns are int4 on Postgres.
MAX_PK = 2**31 - 1


def _pk(value) -> int | None:
    """Parse a record id; anything that is not an integer the key column can hold is unresolvable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if not (stripped.isascii() and stripped.isdigit()):
            return None
        value = int(stripped)
    if isinstance(value, int) and 1 <= value <= MAX_PK:
        return value
    return None


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def install_sqlite_functions(engine) -> None:
    """Replace SQLite's ASCII-only lower() so ilike folds case the way str.lower() does."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _register_lower(dbapi_conn, connection_record):
        dbapi_conn.create_function("lower", 1, _unicode_lower)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_patch(obj, patch: dict, fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in fields:
            continue
        if k in REFERENCE_FIELDS:
            ref = _pk(v)
            if ref is None:
                raise ValidationError(errors=[{"field": k, "message": "is not a valid reference"}])
            v = ref
        setattr(obj, k, v)


def _with_category(product: Product, category: Category | None) -> dict:
    data = product.to_dict()
    data["category"] = category.to_dict() if category is not None else dict(UNKNOWN_CATEGORY)
    return data


class SqlAlchemyStore(InventoryStore):
    """
    Persistent store. Every write commits immediately; a failed commit is
    rolled back before the error propagates.
    """
    name = "persistent"

    def ping(self) -> None:
        """Raise if the database cannot answer a trivial query."""
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def _commit(self, conflict_message: str) -> None:
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(conflict_message)
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def _get(self, model, record_id):
        pk = _pk(record_id)
        if pk is None:
            return None
        return db.session.get(model, pk)

    # Users

    def get_user(self, user_id):
        user = self._get(User, user_id)
        return user.to_dict() if user else None

    def get_user_by_email(self, email):
        user = db.session.query(User).filter(User.email == email).first()
        return user.to_dict() if user else None

    def get_user_by_external_id(self, external_id):
        if not external_id:
            return None
        user = db.session.query(User).filter(User.external_id == external_id).first()
        return user.to_dict() if user else None

    def list_users(self):
        users = db.session.query(User).order_by(User.created_at.asc(), User.id.asc()).all()
        return [u.to_dict() for u in users]

    def create_user(self, data):
        email = data.get("email")
        if db.session.query(User.id).filter(User.email == email).first():
            raise ConflictError("Email already registered.")

        user = User()
        _apply_patch(user, data, USER_MUTABLE_FIELDS)
        db.session.add(user)
        self._commit("Email already registered.")
        return user.to_dict()

    def update_user(self, user_id, patch):
        user = self._get(User, user_id)
        if not user:
            return None

        if "email" in patch and patch["email"] != user.email:
            taken = (
                db.session.query(User.id)
                .filter(User.email == patch["email"], User.id != user.id)
                .first()
            )
            if taken:
                raise ConflictError("Email already registered.")

        _apply_patch(user, patch, USER_MUTABLE_FIELDS)
        user.updated_at = utcnow()
        self._commit("Email already registered.")
        return user.to_dict()

    # Categories

    def get_categories(self):
        categories = db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()
        return [c.to_dict() for c in categories]

    def get_category(self, category_id):
        category = self._get(Category, category_id)
        return category.to_dict() if category else None

    def create_category(self, data):
        if db.session.query(Category.id).filter(Category.name == data.get("name")).first():
            raise ConflictError("Category name already exists.")

        category = Category()
        _apply_patch(category, data, CATEGORY_MUTABLE_FIELDS)
        db.session.add(category)
        self._commit("Category name already exists.")
        return category.to_dict()

    def update_category(self, category_id, patch):
        category = self._get(Category, category_id)
        if not category:
            return None

        if "name" in patch and patch["name"] != category.name:
            taken = (
                db.session.query(Category.id)
                .filter(Category.name == patch["name"], Category.id != category.id)
                .first()
            )
            if taken:
                raise ConflictError("Category name already exists.")

        _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
        category.updated_at = utcnow()
        self._commit("Category name already exists.")
        return category.to_dict()

    def delete_category(self, category_id):
        # Unconditional: products keep their category_id and read back as "Unknown".
        category = self._get(Category, category_id)
        if not category:
            return False
        db.session.delete(category)
        self._commit("Category could not be deleted.")
        return True

    # Products

    def _product_criteria(self, query: ProductQuery) -> list | None:
        criteria = []

        if query.search:
            pattern = f"%{_escape_like(query.search)}%"
            criteria.append(or_(
                Product.name.ilike(pattern, escape="\\"),
                Product.sku.ilike(pattern, escape="\\"),
                Product.description.ilike(pattern, escape="\\"),
            ))

        if query.category_id:
            category_pk = _pk(query.category_id)
            if category_pk is None:
                return None
            criteria.append(Product.category_id == category_pk)

        if query.status == OUT_OF_STOCK:
            criteria.append(Product.stock_quantity <= 0)
        elif query.status == LOW_STOCK:
            criteria.append(and_(
                Product.stock_quantity > 0,
                Product.stock_quantity <= Product.min_stock_level,
            ))
        elif query.status == IN_STOCK:
            criteria.append(Product.stock_quantity > Product.min_stock_level)

        return criteria

    def get_products(self, query=None):
        query = query or ProductQuery()
        criteria = self._product_criteria(query)
        if criteria is None:
            # category_id this backend can never have stored
            return {"items": [], "total": 0}

        total = db.session.query(func.count(Product.id)).filter(*criteria).scalar() or 0

        rows = (
            db.session.query(Product, Category)
            .outerjoin(Category, Category.id == Product.category_id)
            .filter(*criteria)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset(query.offset)
            .limit(query.limit)
            .all()
        )

        return {
            "items": [_with_category(product, category) for product, category in rows],
            "total": int(total),
        }

    def get_product(self, product_id):
        product = self._get(Product, product_id)
        if not product:
            return None
        return _with_category(product, db.session.get(Category, product.category_id))

    def create_product(self, data):
        if db.session.query(Product.id).filter(Product.sku == data.get("sku")).first():
            raise ConflictError("SKU already exists.")

        product = Product()
        _apply_patch(product, data, PRODUCT_MUTABLE_FIELDS)
        db.session.add(product)
        self._commit("SKU already exists.")
        return product.to_dict()

    def update_product(self, product_id, patch):
        product = self._get(Product, product_id)
        if not product:
            return None

        # SKU uniqueness enforcement if changing SKU
        if "sku" in patch and patch["sku"] != product.sku:
            taken = (
                db.session.query(Product.id)
                .filter(Product.sku == patch["sku"], Product.id != product.id)
                .first()
            )
            if taken:
                raise ConflictError("SKU already exists.")

        _apply_patch(product, patch, PRODUCT_MUTABLE_FIELDS)
        product.updated_at = utcnow()
        self._commit("SKU already exists.")
        return product.to_dict()

    def delete_product(self, product_id):
        product = self._get(Product, product_id)
        if not product:
            return False
        db.session.delete(product)
        self._commit("Product could not be deleted.")
        return True

    # Stock movements

    def create_stock_movement(self, data):
        movement = StockMovement()
        _apply_patch(movement, data, MOVEMENT_FIELDS)
        db.session.add(movement)
        self._commit("Stock movement could not be recorded.")
        return movement.to_dict()

    def get_stock_movements(self, product_id):
        pk = _pk(product_id)
        if pk is None:
            return []
        movements = (
            db.session.query(StockMovement)
            .filter(StockMovement.product_id == pk)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .all()
        )
        return [m.to_dict() for m in movements]

    # Aggregates

    def get_dashboard_stats(self):
        total_products = db.session.query(func.count(Product.id)).scalar() or 0
        low_stock_items = (
            db.session.query(func.count(Product.id))
            .filter(Product.stock_quantity <= Product.min_stock_level)
            .scalar()
        ) or 0
        total_value = db.session.query(
            func.coalesce(func.sum(Product.price * Product.stock_quantity), 0)
        ).scalar()
        total_categories = db.session.query(func.count(Category.id)).scalar() or 0

        return dashboard_stats(
            total_products=total_products,
            low_stock_items=low_stock_items,
            total_value=total_value,
            total_categories=total_categories,
        )

    def get_recent_activity(self, limit=RECENT_ACTIVITY_LIMIT):
        rows = (
            db.session.query(StockMovement, Product, User)
            .outerjoin(Product, Product.id == StockMovement.product_id)
            .outerjoin(User, User.id == StockMovement.user_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )
        return [
            activity_entry(
                movement.to_dict(),
                product.to_dict() if product is not None else None,
                user.to_dict() if user is not None else None,
            )
            for movement, product, user in rows
        ]
