from __future__ import annotations

from ..domain import Role, User as UserRecord
from ..extensions import db
from ..time_utils import utcnow


class User(db.Model):
    """
    Customer and staff accounts (the credential store).

    Email is stored lower-cased and is unique across the store.
    Users are never hard-deleted; admins toggle `enabled` instead.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=Role.USER.value)
    enabled = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_domain(self) -> UserRecord:
        return UserRecord(
            id=self.id,
            email=self.email,
            password_hash=self.password_hash,
            full_name=self.full_name,
            role=Role(self.role),
            enabled=self.enabled,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
