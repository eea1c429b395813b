"""Custom hierarchy maintenance schemas."""
from typing import List, Optional
from pydantic import BaseModel, Field
from pm_api.core.custom_hierarchy import HierarchyMembershipRequest, MembershipType


class ProductCustomHierarchyRequest(BaseModel):
    """One product or group to place in (or take out of) a hierarchy node.

    The hierarchy context comes from the URL. Fields are optional so that
    missing values come back as validation messages rather than a 422.
    """
    id: Optional[int] = Field(None, description="Product or product group ID")
    id_type: Optional[MembershipType] = Field(None, description="PRODUCT or PRODUCT_GROUP")
    parent_hierarchy_level: Optional[int] = Field(
        None, description="Entity ID of the custom hierarchy level")
    user_id: Optional[str] = Field(None, max_length=20, description="User making the change")

    def to_membership_request(self, hierarchy_context: str) -> HierarchyMembershipRequest:
        return HierarchyMembershipRequest(
            id=self.id,
            id_type=self.id_type,
            hierarchy_context=hierarchy_context,
            parent_hierarchy_level=self.parent_hierarchy_level,
            user_id=self.user_id,
        )


class CustomHierarchyUpdateResponse(BaseModel):
    rows_changed: int


class ValidationResultResponse(BaseModel):
    valid: bool
    errors: List[str] = []
