from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

MOVEMENT_TYPES = ("in", "out", "adjustment")


class StockMovement(db.Model):
    """
    Append-only stock ledger.

    Rows are never updated or deleted. product_id and user_id are soft
    references so a movement outlives the product or user it names.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def __repr__(self) -> str:
        return f"<StockMovement id={self.id} product_id={self.product_id} type={self.type!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "id": str(self.id),
            "product_id": str(self.product_id),
            "user_id": str(self.user_id),
            "type": self.type,
            "quantity": self.quantity,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
