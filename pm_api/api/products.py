"""Product maintenance routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pm_api.core.database import get_db
from pm_api.core.deps import require_authority
from pm_api.core.product_maintenance import SelfManufacturedMaintenance, TaxCategoryMaintenance
from pm_api.models.product import GoodsProduct
from pm_api.models.user import Authority, User
from pm_api.schemas.product import ProductMaintenanceRequest, ProductMaintenanceResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.patch("/{product_id}", response_model=ProductMaintenanceResponse)
def update_product(
    product_id: int,
    maintenance_request: ProductMaintenanceRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_authority(Authority.PRODUCT_MAINTENANCE))
):
    """
    Update product-level attributes.

    - **vertex_tax_category**: new Vertex tax category
    - **self_manufactured**: whether the product is made in-house

    Attributes that already hold the requested value are not rewritten and
    produce no events.
    """
    if db.get(GoodsProduct, product_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    logger.info("%s requested product maintenance on %d: %s",
                current_user.email, product_id, maintenance_request.model_dump())

    tax_updated = TaxCategoryMaintenance(db).handle_tax_category(
        product_id, maintenance_request.vertex_tax_category, maintenance_request.user_id
    )
    self_mfg_updated = SelfManufacturedMaintenance(db).handle_self_manufactured(
        product_id, maintenance_request.self_manufactured, maintenance_request.user_id
    )
    db.commit()

    return ProductMaintenanceResponse(
        product_id=product_id,
        tax_category_updated=tax_updated,
        self_manufactured_updated=self_mfg_updated,
    )
