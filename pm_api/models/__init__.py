"""Models package."""
from pm_api.models.user import User, UserRole, Authority
from pm_api.models.entity import (
    GenericEntity,
    GenericEntityType,
    EntityDescription,
    EntityRelationship,
    HierarchyContext,
    EntityRelationshipKey,
)
from pm_api.models.product import ProductMaster, ProductGroup, ProductScanCode, GoodsProduct
from pm_api.models.legacy_event import LegacyEvent, LegacyEventCode, LegacyEventFunction
