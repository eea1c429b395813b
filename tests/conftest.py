"""Pytest fixtures for API testing."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pm_api.main import app
from pm_api.core.database import get_db
from pm_api.core.security import get_password_hash, create_access_token
from pm_api.core.time import start_of_today
from pm_api.models.base import Base
from pm_api.models.user import User, Authority
from pm_api.models.entity import (
    EntityRelationship, GenericEntity, GenericEntityType, HierarchyContext
)
from pm_api.models.product import GoodsProduct, ProductGroup, ProductMaster, ProductScanCode

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override."""
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def hierarchy_user(db_session):
    """A user allowed to maintain custom hierarchies."""
    user = User(
        email="hierarchy@example.com",
        full_name="Hierarchy User",
        password_hash=get_password_hash("testpass123"),
        role="User",
        authorities=Authority.CUSTOM_HIERARCHY.value
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def product_user(db_session):
    """A user allowed to maintain product attributes."""
    user = User(
        email="product@example.com",
        full_name="Product User",
        password_hash=get_password_hash("testpass123"),
        role="User",
        authorities=Authority.PRODUCT_MAINTENANCE.value
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def plain_user(db_session):
    """A user with no authorities."""
    user = User(
        email="plain@example.com",
        full_name="Plain User",
        password_hash=get_password_hash("plainpass123"),
        role="User",
        authorities=""
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def hierarchy_headers(hierarchy_user):
    token = create_access_token(hierarchy_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def product_headers(product_user):
    token = create_access_token(product_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def plain_headers(plain_user):
    token = create_access_token(plain_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def hierarchy_contexts(db_session):
    """The MAT context and one ordinary custom hierarchy."""
    mat = HierarchyContext(code="MAT", description="Master Attribute Taxonomy")
    cust = HierarchyContext(code="CUST1", description="Custom Hierarchy 1")
    db_session.add_all([mat, cust])
    db_session.commit()
    return {"MAT": mat, "CUST1": cust}


@pytest.fixture
def products(db_session):
    """Products 555 and 556 (555 has a primary UPC) and product group 77."""
    p555 = ProductMaster(product_id=555, description="Whole Milk")
    p556 = ProductMaster(product_id=556, description="Skim Milk")
    group = ProductGroup(product_group_id=77, name="Dairy")
    db_session.add_all([p555, p556, group])
    db_session.flush()

    db_session.add_all([
        ProductScanCode(upc=4122000555, product_id=555, primary_upc=True),
        ProductScanCode(upc=4122000556, product_id=555, primary_upc=False),
        GoodsProduct(product_id=555, vertex_tax_category="FOOD", self_manufactured="N"),
        GoodsProduct(product_id=556, vertex_tax_category="FOOD", self_manufactured="N"),
    ])
    db_session.commit()
    return {"555": p555, "556": p556, "group": group}


def make_entity(db_session, entity_id, entity_type, display_number=None, text="Node"):
    entity = GenericEntity(
        entity_id=entity_id,
        entity_type=entity_type.value,
        display_number=display_number,
        display_text=text,
        create_user_id="TEST",
    )
    db_session.add(entity)
    return entity


def make_relationship(db_session, parent_id, child_id, context, default_parent=True):
    rel = EntityRelationship(
        parent_entity_id=parent_id,
        child_entity_id=child_id,
        hierarchy_context=context,
        default_parent=default_parent,
        display=True,
        sequence_number=1,
        effective_date=start_of_today(),
        create_user_id="TEST",
        last_update_user_id="TEST",
    )
    db_session.add(rel)
    return rel


@pytest.fixture
def hierarchy_levels(db_session, hierarchy_contexts):
    """
    Custom hierarchy levels:

        800 (has a level below it, so not lowest level)
         └── 900 (empty lowest level)
        901 (empty lowest level)
        902 (empty lowest level, MAT)
        950 is a product entity, not a hierarchy level
    """
    make_entity(db_session, 800, GenericEntityType.CUSTOM_HIERARCHY_LEVEL, text="Dairy & Eggs")
    make_entity(db_session, 900, GenericEntityType.CUSTOM_HIERARCHY_LEVEL, text="Milk")
    make_entity(db_session, 901, GenericEntityType.CUSTOM_HIERARCHY_LEVEL, text="Organic")
    make_entity(db_session, 902, GenericEntityType.CUSTOM_HIERARCHY_LEVEL, text="MAT Milk")
    make_entity(db_session, 950, GenericEntityType.PRODUCT, display_number=12345, text="Other")
    db_session.flush()
    make_relationship(db_session, 800, 900, "CUST1")
    db_session.commit()
    return {"non_leaf": 800, "milk": 900, "organic": 901, "mat": 902, "not_a_level": 950}
