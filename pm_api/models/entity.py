"""Generic entity tables - products, product groups and hierarchy nodes.

An entity is a node in one or more hierarchies. Parent-child edges live in
``entity_relationships`` and are scoped by hierarchy context.
"""
import enum
from datetime import date, datetime
from typing import List, NamedTuple, Optional
from sqlalchemy import (
    BigInteger, Boolean, Date, DateTime, ForeignKey, Integer, String, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pm_api.models.base import Base
from pm_api.core.time import utc_now, FOREVER


class GenericEntityType(str, enum.Enum):
    """Kinds of rows in the entities table."""
    PRODUCT = "PROD"
    PRODUCT_GROUP = "PGRP"
    CUSTOM_HIERARCHY_LEVEL = "CHLV"


# Children of these types may sit under a lowest-level hierarchy node.
LEAF_ENTITY_TYPES = (GenericEntityType.PRODUCT.value, GenericEntityType.PRODUCT_GROUP.value)

YES = "Y"
NO = "N"


class HierarchyContext(Base):
    """A named classification scheme entities can be organized under."""
    __tablename__ = "hierarchy_contexts"

    # Master attribute taxonomy
    MASTER_ATTRIBUTE_TAXONOMY = "MAT"

    code: Mapped[str] = mapped_column(String(10), primary_key=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class GenericEntity(Base):
    """A product, product group or hierarchy level."""
    __tablename__ = "entities"

    entity_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    entity_type: Mapped[str] = mapped_column(String(5), nullable=False, index=True)
    # External id of the thing this entity stands for (e.g. product id)
    display_number: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True, index=True)
    display_text: Mapped[str] = mapped_column(String(255), nullable=False, default=" ")
    create_user_id: Mapped[str] = mapped_column(String(20), nullable=False)
    create_ts: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    descriptions: Mapped[List["EntityDescription"]] = relationship(
        "EntityDescription", back_populates="entity", cascade="all, delete-orphan"
    )


class EntityDescription(Base):
    """Label for an entity within one hierarchy context."""
    __tablename__ = "entity_descriptions"

    entity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("entities.entity_id", ondelete="CASCADE"), primary_key=True
    )
    hierarchy_context: Mapped[str] = mapped_column(
        String(10), ForeignKey("hierarchy_contexts.code"), primary_key=True
    )
    short_description: Mapped[str] = mapped_column(String(50), nullable=False)
    long_description: Mapped[str] = mapped_column(String(255), nullable=False, default=" ")
    create_user_id: Mapped[str] = mapped_column(String(20), nullable=False)
    create_ts: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    entity: Mapped["GenericEntity"] = relationship("GenericEntity", back_populates="descriptions")


class EntityRelationship(Base):
    """Directed parent -> child edge within a hierarchy context."""
    __tablename__ = "entity_relationships"

    parent_entity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("entities.entity_id"), primary_key=True
    )
    child_entity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("entities.entity_id"), primary_key=True, index=True
    )
    hierarchy_context: Mapped[str] = mapped_column(
        String(10), ForeignKey("hierarchy_contexts.code"), primary_key=True
    )
    default_parent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    effective_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False, default=FOREVER)
    active: Mapped[str] = mapped_column(String(1), nullable=False, default=YES)
    create_user_id: Mapped[str] = mapped_column(String(20), nullable=False)
    create_ts: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    last_update_user_id: Mapped[str] = mapped_column(String(20), nullable=False)
    last_update_ts: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        CheckConstraint('parent_entity_id != child_entity_id', name='ck_entity_relationship_no_self_ref'),
    )

    parent_entity = relationship("GenericEntity", foreign_keys=[parent_entity_id])
    child_entity = relationship("GenericEntity", foreign_keys=[child_entity_id])


class EntityRelationshipKey(NamedTuple):
    """Composite key of an entity_relationships row."""
    parent_entity_id: int
    child_entity_id: int
    hierarchy_context: str

    def __str__(self) -> str:
        return f"{self.parent_entity_id}|{self.child_entity_id}|{self.hierarchy_context}"
