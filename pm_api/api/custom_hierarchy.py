"""Custom hierarchy routes - place products and groups in hierarchy nodes."""
import logging
from typing import List, Literal
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from pm_api.core.custom_hierarchy import CustomHierarchyMaintenance
from pm_api.core.database import get_db
from pm_api.core.deps import require_authority
from pm_api.core.exceptions import ValidationError
from pm_api.models.user import Authority, User
from pm_api.schemas.custom_hierarchy import (
    ProductCustomHierarchyRequest,
    CustomHierarchyUpdateResponse,
    ValidationResultResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/{hierarchy}/products", response_model=CustomHierarchyUpdateResponse)
def add_products_to_hierarchy(
    hierarchy: str,
    requests: List[ProductCustomHierarchyRequest],
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authority(Authority.CUSTOM_HIERARCHY))
):
    """
    Add products (or groups) to custom hierarchy levels.

    All requests are validated; if any fails nothing is written and every
    problem is returned (409).
    """
    logger.info(
        "%s from IP %s has requested to add products to hierarchy %s: %s",
        current_user.email, _client_host(request), hierarchy,
        [r.model_dump() for r in requests]
    )

    maintenance = CustomHierarchyMaintenance(db)
    rows_inserted = maintenance.add_products_to_hierarchy(
        [r.to_membership_request(hierarchy) for r in requests]
    )
    db.commit()

    return CustomHierarchyUpdateResponse(rows_changed=rows_inserted)


@router.delete("/{hierarchy}/products", response_model=CustomHierarchyUpdateResponse)
def remove_products_from_hierarchy(
    hierarchy: str,
    requests: List[ProductCustomHierarchyRequest],
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authority(Authority.CUSTOM_HIERARCHY))
):
    """Remove products (or groups) from custom hierarchy levels."""
    logger.info(
        "%s from IP %s has requested to remove products from hierarchy %s: %s",
        current_user.email, _client_host(request), hierarchy,
        [r.model_dump() for r in requests]
    )

    maintenance = CustomHierarchyMaintenance(db)
    rows_deleted = maintenance.remove_products_from_hierarchy(
        [r.to_membership_request(hierarchy) for r in requests]
    )
    db.commit()

    return CustomHierarchyUpdateResponse(rows_changed=rows_deleted)


@router.post("/{hierarchy}/products/validate", response_model=List[ValidationResultResponse])
def validate_products_for_hierarchy(
    hierarchy: str,
    requests: List[ProductCustomHierarchyRequest],
    action: Literal["add", "remove"] = "add",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authority(Authority.CUSTOM_HIERARCHY))
):
    """
    Validate requests without applying them.

    Returns one result per request, in order.
    """
    maintenance = CustomHierarchyMaintenance(db)
    results = []
    for r in requests:
        membership_request = r.to_membership_request(hierarchy)
        try:
            if action == "remove":
                maintenance.validate_remove(membership_request)
            else:
                maintenance.validate_add(membership_request)
            results.append(ValidationResultResponse(valid=True))
        except ValidationError as e:
            results.append(ValidationResultResponse(valid=False, errors=e.errors))

    return results
