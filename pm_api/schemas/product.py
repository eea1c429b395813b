"""Product maintenance schemas."""
from typing import Optional
from pydantic import BaseModel, Field


class ProductMaintenanceRequest(BaseModel):
    """Attributes to change on a single product. Omitted fields are left alone."""
    user_id: str = Field(..., min_length=1, max_length=20)
    vertex_tax_category: Optional[str] = Field(None, max_length=20)
    self_manufactured: Optional[bool] = None


class ProductMaintenanceResponse(BaseModel):
    product_id: int
    tax_category_updated: int = 0
    self_manufactured_updated: int = 0
