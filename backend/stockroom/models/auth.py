from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

USER_ROLES = ("user", "admin")
USER_PROVIDERS = ("local", "google")


class User(db.Model):
    """
    User accounts for authentication and stock-movement attribution.

    password_hash is NULL for accounts created through an external identity
    provider; external_id is attached on the first federated login.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_external_id", "external_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="user")

    external_id = db.Column(db.String(255), nullable=True)
    provider = db.Column(db.String(16), nullable=False, default="local")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "id": str(self.id),
            "email": self.email,
            "password_hash": self.password_hash,
            "name": self.name,
            "role": self.role,
            "external_id": self.external_id,
            "provider": self.provider,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
