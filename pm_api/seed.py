"""Seed minimal reference data."""
import os
from sqlalchemy.orm import Session
from pm_api.core.database import SessionLocal
from pm_api.core.security import get_password_hash
from pm_api.models.entity import HierarchyContext
from pm_api.models.user import Authority, User, UserRole


HIERARCHY_CONTEXTS = [
    {"code": HierarchyContext.MASTER_ATTRIBUTE_TAXONOMY, "description": "Master Attribute Taxonomy"},
    {"code": "CUST1", "description": "eCommerce Custom Hierarchy"},
]


def seed_hierarchy_contexts(db: Session) -> int:
    """Insert any missing hierarchy contexts. Returns how many were added."""
    added = 0
    for data in HIERARCHY_CONTEXTS:
        if db.get(HierarchyContext, data["code"]) is None:
            db.add(HierarchyContext(**data))
            added += 1
    db.flush()
    return added


def seed_admin_user(db: Session, email: str, password: str) -> User:
    """Create the admin user if it doesn't exist yet."""
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user

    user = User(
        email=email,
        full_name="Administrator",
        password_hash=get_password_hash(password),
        role=UserRole.ADMIN.value,
        authorities=",".join(a.value for a in Authority),
    )
    db.add(user)
    db.flush()
    return user


def seed_database() -> None:
    db = SessionLocal()
    try:
        added = seed_hierarchy_contexts(db)
        print(f"✓ {added} hierarchy contexts added")
        seed_admin_user(
            db,
            os.getenv("ADMIN_EMAIL", "admin@example.com"),
            os.getenv("ADMIN_PASSWORD", "admin123"),
        )
        print("✓ Admin user ready")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
