"""Named queries over the entity/hierarchy tables.

Each function answers one question the membership rules need. They all take
the request's session so they see rows flushed earlier in the same
transaction.
"""
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pm_api.models.entity import (
    EntityRelationship, GenericEntity, HierarchyContext, LEAF_ENTITY_TYPES
)


def hierarchy_context_exists(db: Session, code: str) -> bool:
    return db.query(HierarchyContext.code).filter(
        HierarchyContext.code == code
    ).first() is not None


def count_non_leaf_children(db: Session, parent_entity_id: int) -> int:
    """Number of distinct children of a node that are neither products nor groups.

    Zero means the node is a lowest level (or empty), in any context.
    """
    return db.query(func.count(func.distinct(EntityRelationship.child_entity_id))).join(
        GenericEntity, EntityRelationship.child_entity_id == GenericEntity.entity_id
    ).filter(
        EntityRelationship.parent_entity_id == parent_entity_id,
        GenericEntity.entity_type.notin_(LEAF_ENTITY_TYPES),
    ).scalar() or 0


def count_memberships_in_context(db: Session, child_entity_id: int, hierarchy_context: str) -> int:
    """How many parents a child has within one hierarchy context."""
    return db.query(func.count()).select_from(EntityRelationship).filter(
        EntityRelationship.child_entity_id == child_entity_id,
        EntityRelationship.hierarchy_context == hierarchy_context,
    ).scalar() or 0


def count_memberships_at_node(db: Session, parent_entity_id: int, child_entity_id: int,
                              hierarchy_context: str) -> int:
    return db.query(func.count()).select_from(EntityRelationship).filter(
        EntityRelationship.parent_entity_id == parent_entity_id,
        EntityRelationship.child_entity_id == child_entity_id,
        EntityRelationship.hierarchy_context == hierarchy_context,
    ).scalar() or 0


def count_default_parent_at_node(db: Session, parent_entity_id: int, child_entity_id: int,
                                 hierarchy_context: str) -> int:
    return db.query(func.count()).select_from(EntityRelationship).filter(
        EntityRelationship.parent_entity_id == parent_entity_id,
        EntityRelationship.child_entity_id == child_entity_id,
        EntityRelationship.hierarchy_context == hierarchy_context,
        EntityRelationship.default_parent.is_(True),
    ).scalar() or 0


def max_entity_id(db: Session) -> Optional[int]:
    """Highest entity id in use, or None when the table is empty."""
    return db.query(func.max(GenericEntity.entity_id)).scalar()
