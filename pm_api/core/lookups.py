"""Keyed lookups against entity and product tables."""
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from pm_api.models.entity import GenericEntity, GenericEntityType
from pm_api.models.product import ProductGroup, ProductMaster, ProductScanCode


class EntityLookup:
    """Finds rows in the entities table, descriptions included."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, entity_id: int) -> Optional[GenericEntity]:
        return self.db.query(GenericEntity).options(
            selectinload(GenericEntity.descriptions)
        ).filter(GenericEntity.entity_id == entity_id).first()

    def find_by_type_and_external_id(self, entity_type: GenericEntityType,
                                     external_id: int) -> Optional[GenericEntity]:
        """Find the entity standing for a product (or group) id."""
        return self.db.query(GenericEntity).options(
            selectinload(GenericEntity.descriptions)
        ).filter(
            GenericEntity.entity_type == entity_type.value,
            GenericEntity.display_number == external_id,
        ).order_by(GenericEntity.entity_id).first()


class ProductLookup:

    def __init__(self, db: Session):
        self.db = db

    def is_product_id(self, product_id: int) -> bool:
        return self.db.query(ProductMaster.product_id).filter(
            ProductMaster.product_id == product_id
        ).first() is not None

    def get_product_primary_upc(self, product_id: int) -> Optional[int]:
        """Primary UPC of a product, if it has one."""
        row = self.db.query(ProductScanCode.upc).filter(
            ProductScanCode.product_id == product_id,
            ProductScanCode.primary_upc.is_(True),
        ).order_by(ProductScanCode.upc).first()
        return row[0] if row else None


class ProductGroupLookup:

    def __init__(self, db: Session):
        self.db = db

    def is_product_group_id(self, product_group_id: int) -> bool:
        return self.db.query(ProductGroup.product_group_id).filter(
            ProductGroup.product_group_id == product_group_id
        ).first() is not None
