"""Custom hierarchy membership maintenance.

Adds products and product groups to (and removes them from) lowest-level
nodes of a custom hierarchy. Each request is validated in full, turned into
a change set of relationship rows plus legacy events, and the change sets are
written in the caller's transaction.

Rules:
1. The parent must be an existing custom hierarchy level.
2. On add, the parent may only hold products and groups (or be empty).
3. A child's first membership in a context is its default parent; later
   memberships are non-default.
4. The default parent cannot be removed while non-default memberships exist.
5. The MAT context only takes products, and each product at most once.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from pm_api.core import hierarchy_queries
from pm_api.core.config import settings
from pm_api.core.exceptions import ValidationError
from pm_api.core.legacy_events import LegacyEventProcessor, generate_enrm, generate_enym
from pm_api.core.lookups import EntityLookup, ProductGroupLookup, ProductLookup
from pm_api.core.time import FOREVER, start_of_today
from pm_api.models.entity import (
    YES,
    EntityDescription,
    EntityRelationship,
    EntityRelationshipKey,
    GenericEntity,
    GenericEntityType,
    HierarchyContext,
)
from pm_api.models.legacy_event import LegacyEvent, LegacyEventFunction

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCE_NUMBER = 1
MINIMUM_ENTITY_ID = 1

VALIDATION_FAILED_MESSAGE = "Unable to validate custom hierarchy maintenance request."

T = TypeVar("T")


class MembershipType(str, enum.Enum):
    """What kind of thing is being placed in the hierarchy."""
    PRODUCT = "PRODUCT"
    PRODUCT_GROUP = "PRODUCT_GROUP"


@dataclass
class HierarchyMembershipRequest:
    """One product or group to add to / remove from one hierarchy node."""
    id: Optional[int] = None
    id_type: Optional[MembershipType] = None
    hierarchy_context: Optional[str] = None
    parent_hierarchy_level: Optional[int] = None
    user_id: Optional[str] = None

    @property
    def hierarchy_context_code(self) -> Optional[str]:
        if self.hierarchy_context is None:
            return None
        return self.hierarchy_context.strip().upper()


@dataclass
class TableUpdateSets(Generic[T]):
    """Rows to insert, keys to delete and events to publish."""
    inserts: List[T] = field(default_factory=list)
    deletes: List[EntityRelationshipKey] = field(default_factory=list)
    events: List[LegacyEvent] = field(default_factory=list)

    def add_all(self, other: "TableUpdateSets[T]") -> None:
        self.inserts.extend(other.inserts)
        self.deletes.extend(other.deletes)
        self.events.extend(other.events)

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.deletes or self.events)


@dataclass
class ResolvedChild:
    """What one request resolved its child to. Lives for one request only."""
    entity_type: GenericEntityType
    entity: Optional[GenericEntity] = None
    created: bool = False


class MembershipChange:
    """Validates and plans a single membership request.

    Holds the lookups it has already done so the validation steps and the
    planning step don't repeat them. Build one per request; never reuse.
    """

    def __init__(self, db: Session, request: HierarchyMembershipRequest,
                 program_name: Optional[str] = None):
        if request is None:
            raise ValueError("Request cannot be None")
        self.db = db
        self.request = request
        self.program_name = program_name or settings.PROGRAM_NAME
        self.entity_lookup = EntityLookup(db)
        self.product_lookup = ProductLookup(db)
        self.product_group_lookup = ProductGroupLookup(db)
        self.child = ResolvedChild(entity_type=self._child_entity_type())

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_add(self) -> TableUpdateSets[EntityRelationship]:
        """Validate as an add and return the rows/events it needs."""
        self.validate_add()

        updates: TableUpdateSets[EntityRelationship] = TableUpdateSets()
        context = self.request.hierarchy_context_code
        parent_id = self.request.parent_hierarchy_level

        child_entity = self.get_entity_for_child(create_if_not_found=True)

        # A child we just created can't already be in the node.
        if not self.child.created and self.already_in_node(parent_id, child_entity.entity_id, context):
            return updates

        exists_in_hierarchy = self.already_in_hierarchy(child_entity.entity_id, context)

        key = EntityRelationshipKey(parent_id, child_entity.entity_id, context)
        updates.inserts.append(EntityRelationship(
            parent_entity_id=key.parent_entity_id,
            child_entity_id=key.child_entity_id,
            hierarchy_context=key.hierarchy_context,
            default_parent=not exists_in_hierarchy,
            display=True,
            sequence_number=DEFAULT_SEQUENCE_NUMBER,
            effective_date=start_of_today(),
            expiration_date=FOREVER,
            active=YES,
            create_user_id=self.request.user_id,
            last_update_user_id=self.request.user_id,
        ))

        updates.events.append(generate_enrm(
            key, self.program_name, self.request.user_id, LegacyEventFunction.ADD))
        if self.child.created:
            updates.events.append(generate_enym(
                child_entity.entity_id, self.program_name, self.request.user_id, LegacyEventFunction.ADD))

        return updates

    def plan_remove(self) -> TableUpdateSets[EntityRelationship]:
        """Validate as a remove and return the keys/events it needs.

        Removing something that isn't there is not an error, just empty.
        """
        self.validate_remove()

        updates: TableUpdateSets[EntityRelationship] = TableUpdateSets()
        context = self.request.hierarchy_context_code
        parent_id = self.request.parent_hierarchy_level

        child_entity = self.get_entity_for_child(create_if_not_found=False)
        if child_entity is None:
            return updates

        if not self.already_in_node(parent_id, child_entity.entity_id, context):
            return updates

        key = EntityRelationshipKey(parent_id, child_entity.entity_id, context)
        updates.deletes.append(key)
        updates.events.append(generate_enrm(
            key, self.program_name, self.request.user_id, LegacyEventFunction.DELETE))

        return updates

    # ------------------------------------------------------------------
    # Child entity resolution
    # ------------------------------------------------------------------

    def _child_entity_type(self) -> GenericEntityType:
        if self.request.id_type == MembershipType.PRODUCT_GROUP:
            return GenericEntityType.PRODUCT_GROUP
        return GenericEntityType.PRODUCT

    def get_entity_for_child(self, create_if_not_found: bool) -> Optional[GenericEntity]:
        """The entity row standing for the request's product or group.

        With create_if_not_found, a missing entity is created; otherwise None
        is returned.
        """
        if self.child.entity is not None:
            return self.child.entity

        found = self.entity_lookup.find_by_type_and_external_id(self.child.entity_type, self.request.id)
        if found is not None:
            self.child.entity = found
        elif create_if_not_found:
            self.child.entity = self.create_new_entity()

        return self.child.entity

    def create_new_entity(self) -> GenericEntity:
        """Insert an entity (and its description) for the request's child."""
        logger.info("Creating new entity for %s.", self.request.id)

        current_max = hierarchy_queries.max_entity_id(self.db)
        entity_id = MINIMUM_ENTITY_ID if current_max is None else current_max + 1

        entity = GenericEntity(
            entity_id=entity_id,
            entity_type=self.child.entity_type.value,
            display_number=self.request.id,
            display_text=" ",
            create_user_id=self.request.user_id,
        )
        self.db.add(entity)
        self.db.add(EntityDescription(
            entity_id=entity_id,
            hierarchy_context=self.request.hierarchy_context_code,
            short_description=self.child.entity_type.value,
            long_description=" ",
            create_user_id=self.request.user_id,
        ))
        self.db.flush()

        self.child.created = True
        return entity

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_add(self) -> None:
        errors = self.validate()

        level_error = self.validate_hierarchy_level_for_add()
        if level_error:
            errors.append(level_error)

        mat_error = self.validate_mat_entry()
        if mat_error:
            errors.append(mat_error)

        if errors:
            raise ValidationError(VALIDATION_FAILED_MESSAGE, errors)

    def validate_remove(self) -> None:
        errors = self.validate()
        if errors:
            raise ValidationError(VALIDATION_FAILED_MESSAGE, errors)

        # Relies on the checks above having passed.
        default_parent_error = self.validate_default_parent()
        if default_parent_error:
            raise ValidationError(VALIDATION_FAILED_MESSAGE, [default_parent_error])

    def validate(self) -> List[str]:
        """Checks shared by add and remove. Returns every problem found."""
        errors = []

        if self.request.user_id is None or not str(self.request.user_id).strip():
            errors.append("User ID is required.")

        for check in (self.validate_product_id, self.validate_hierarchy, self.validate_hierarchy_level):
            error = check()
            if error:
                errors.append(error)

        return errors

    def validate_product_id(self) -> Optional[str]:
        if self.request.id is None or self.request.id_type is None:
            return "An ID and type are required."

        if self.request.id_type == MembershipType.PRODUCT:
            if not self.product_lookup.is_product_id(self.request.id):
                return f"{self.request.id} is not a valid product ID."
        elif not self.product_group_lookup.is_product_group_id(self.request.id):
            return f"{self.request.id} is not a valid product group ID."

        return None

    def validate_hierarchy(self) -> Optional[str]:
        if self.request.hierarchy_context is None:
            return "A hierarchy context is required."

        if not hierarchy_queries.hierarchy_context_exists(self.db, self.request.hierarchy_context_code):
            return f"{self.request.hierarchy_context} is not a valid hierarchy context."

        return None

    def validate_hierarchy_level(self) -> Optional[str]:
        parent_id = self.request.parent_hierarchy_level
        if parent_id is None:
            return "A parent hierarchy level is required."

        # Missing context is reported by validate_hierarchy.
        if self.request.hierarchy_context is None:
            return None

        parent = self.entity_lookup.find_by_id(parent_id)
        if parent is None:
            return f"{parent_id} is not a valid hierarchy level."

        if parent.entity_type != GenericEntityType.CUSTOM_HIERARCHY_LEVEL.value:
            return f"{parent_id} is not a custom hierarchy level."

        return None

    def validate_hierarchy_level_for_add(self) -> Optional[str]:
        """The parent must hold only products and groups, or nothing."""
        parent_id = self.request.parent_hierarchy_level
        if parent_id is None:
            return None

        if hierarchy_queries.count_non_leaf_children(self.db, parent_id) != 0:
            return f"{parent_id} contains non-product or product-group children."

        return None

    def validate_mat_entry(self) -> Optional[str]:
        if self.request.hierarchy_context_code != HierarchyContext.MASTER_ATTRIBUTE_TAXONOMY:
            return None

        if self.request.id_type == MembershipType.PRODUCT_GROUP:
            return "Only products can be added to the MAT hierarchy."

        if self.request.id is None or self.request.id_type is None:
            return None

        child_entity = self.get_entity_for_child(create_if_not_found=False)
        if child_entity is None:
            return None

        if self.already_in_hierarchy(child_entity.entity_id, self.request.hierarchy_context_code):
            return f"Product {self.request.id} already exists in the MAT hierarchy."

        return None

    def validate_default_parent(self) -> Optional[str]:
        child_entity = self.get_entity_for_child(create_if_not_found=False)
        if child_entity is None:
            return None

        context = self.request.hierarchy_context_code
        memberships = hierarchy_queries.count_memberships_in_context(self.db, child_entity.entity_id, context)
        if memberships <= 1:
            return None

        if hierarchy_queries.count_default_parent_at_node(
                self.db, self.request.parent_hierarchy_level, child_entity.entity_id, context) > 0:
            return "You cannot remove the default parent if there are non-defaults."

        return None

    def already_in_hierarchy(self, child_entity_id: int, hierarchy_context: str) -> bool:
        return hierarchy_queries.count_memberships_in_context(self.db, child_entity_id, hierarchy_context) > 0

    def already_in_node(self, parent_entity_id: int, child_entity_id: int, hierarchy_context: str) -> bool:
        return hierarchy_queries.count_memberships_at_node(
            self.db, parent_entity_id, child_entity_id, hierarchy_context) > 0


class CustomHierarchyMaintenance:
    """Applies batches of membership requests in the caller's transaction.

    Rows and events are flushed, never committed.
    """

    def __init__(self, db: Session, program_name: Optional[str] = None):
        self.db = db
        self.program_name = program_name or settings.PROGRAM_NAME
        self.event_processor = LegacyEventProcessor(db)

    def validate_add(self, request: HierarchyMembershipRequest) -> None:
        self._do_validation(request, is_remove=False)

    def validate_remove(self, request: HierarchyMembershipRequest) -> None:
        self._do_validation(request, is_remove=True)

    def add_products_to_hierarchy(self, requests: Sequence[HierarchyMembershipRequest]) -> int:
        """Add every request; returns rows inserted."""
        if self._contains_same_product_more_than_once(requests):
            return self._add_requests_one_at_a_time(requests)
        return self._add_requests_in_bunch(requests)

    def remove_products_from_hierarchy(self, requests: Sequence[HierarchyMembershipRequest]) -> int:
        """Remove every request; returns rows deleted."""
        updates: TableUpdateSets[EntityRelationship] = TableUpdateSets()
        planned_keys = set()
        for request in requests:
            planned = self._change(request).plan_remove()
            # A repeated request would delete nothing more but publish again.
            if any(key in planned_keys for key in planned.deletes):
                continue
            planned_keys.update(planned.deletes)
            updates.add_all(planned)

        rows_deleted = self._do_deletes(updates.deletes)
        self.event_processor.add_and_flush(updates.events)
        logger.info("Removed %d custom hierarchy memberships", rows_deleted)
        return rows_deleted

    def _change(self, request: HierarchyMembershipRequest) -> MembershipChange:
        return MembershipChange(self.db, request, self.program_name)

    def _do_validation(self, request: Optional[HierarchyMembershipRequest], is_remove: bool) -> None:
        if request is None:
            raise ValidationError("Unable to validate request.", "Request cannot be null.")

        change = self._change(request)
        if is_remove:
            change.validate_remove()
        else:
            change.validate_add()

    def _add_requests_one_at_a_time(self, requests: Sequence[HierarchyMembershipRequest]) -> int:
        """Each request sees the rows written for the ones before it."""
        rows_inserted = 0
        for request in requests:
            updates = self._change(request).plan_add()
            rows_inserted += self._do_inserts(updates.inserts)
            self.event_processor.add_and_flush(updates.events)
        logger.info("Added %d custom hierarchy memberships", rows_inserted)
        return rows_inserted

    def _add_requests_in_bunch(self, requests: Sequence[HierarchyMembershipRequest]) -> int:
        """Only safe when no product or group appears twice in the batch."""
        updates: TableUpdateSets[EntityRelationship] = TableUpdateSets()
        for request in requests:
            updates.add_all(self._change(request).plan_add())

        rows_inserted = self._do_inserts(updates.inserts)
        self.event_processor.add_and_flush(updates.events)
        logger.info("Added %d custom hierarchy memberships", rows_inserted)
        return rows_inserted

    @staticmethod
    def _contains_same_product_more_than_once(requests: Sequence[HierarchyMembershipRequest]) -> bool:
        seen = set()
        for request in requests:
            if request.id in seen:
                return True
            seen.add(request.id)
        return False

    def _do_inserts(self, rows: List[EntityRelationship]) -> int:
        if not rows:
            return 0
        self.db.add_all(rows)
        self.db.flush()
        return len(rows)

    def _do_deletes(self, keys: List[EntityRelationshipKey]) -> int:
        rows_deleted = 0
        for key in keys:
            rows_deleted += self.db.query(EntityRelationship).filter(
                EntityRelationship.parent_entity_id == key.parent_entity_id,
                EntityRelationship.child_entity_id == key.child_entity_id,
                EntityRelationship.hierarchy_context == key.hierarchy_context,
            ).delete(synchronize_session="fetch")
        self.db.flush()
        return rows_deleted
