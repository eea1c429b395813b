"""Product-level (goods product) maintenance.

``ProductMaintenanceUtils`` holds the common update path: filter and stamp
the candidate rows, hand them to a per-attribute writer, then queue the
standard legacy events for every product actually changed. The attribute
classes below it are thin users of that path.
"""
import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from pm_api.core.config import settings
from pm_api.core.exceptions import ValidationError
from pm_api.core.legacy_events import (
    LegacyEventProcessor,
    generate_gpdm,
    generate_prm2,
    generate_prmm,
    generate_psc2,
)
from pm_api.core.lookups import ProductLookup
from pm_api.core.time import utc_now
from pm_api.models.entity import NO, YES
from pm_api.models.legacy_event import LegacyEvent, LegacyEventFunction
from pm_api.models.product import GoodsProduct

logger = logging.getLogger(__name__)

# Returns the row to update, or None to skip it.
GoodsProductMapper = Callable[[GoodsProduct], Optional[GoodsProduct]]
GoodsProductUpdater = Callable[[List[GoodsProduct]], None]


class ProductMaintenanceUtils:
    """Common update path for goods product attributes."""

    def __init__(self, db: Session, user_id: str, program_name: Optional[str] = None,
                 system_id: Optional[int] = None):
        self.db = db
        self.user_id = user_id
        self.program_name = program_name or settings.PROGRAM_NAME
        self.system_id = settings.SYSTEM_ID if system_id is None else system_id
        self.product_lookup = ProductLookup(db)
        self.event_processor = LegacyEventProcessor(db)

    def do_goods_product_update(self, goods_products: Sequence[GoodsProduct],
                                mapper: GoodsProductMapper,
                                updater: GoodsProductUpdater) -> int:
        """
        Update a set of goods products and publish their events.

        Args:
            goods_products: Candidate rows.
            mapper: Called once per candidate. Returns the row to write
                (usually the same object) or None if nothing needs to change.
            updater: Writes the surviving rows. Audit fields are already set.

        Returns:
            int: Number of products updated.
        """
        to_update = self.get_goods_products_to_update(goods_products, mapper)

        updater(to_update)

        self.event_processor.add_and_flush(self.get_legacy_events(to_update))

        return len(to_update)

    def get_goods_products_to_update(self, goods_products: Sequence[GoodsProduct],
                                     mapper: GoodsProductMapper) -> List[GoodsProduct]:
        to_update = []
        for goods_product in goods_products:
            mapped = mapper(goods_product)
            if mapped is not None:
                to_update.append(self.set_update_fields(mapped))
        return to_update

    def get_legacy_events(self, goods_products: Sequence[GoodsProduct]) -> List[LegacyEvent]:
        events = []
        for goods_product in goods_products:
            events.extend(self.generate_product_events(goods_product))
        return events

    def generate_product_events(self, goods_product: GoodsProduct) -> List[LegacyEvent]:
        """PSC2 for the primary UPC (when there is one), then PRM2, PRMM and GPDM."""
        events = []
        user_id = goods_product.last_update_user_id

        primary_upc = self.product_lookup.get_product_primary_upc(goods_product.product_id)
        if primary_upc is not None:
            events.append(generate_psc2(primary_upc, self.program_name, user_id, LegacyEventFunction.UPDATE))

        events.append(generate_prm2(goods_product.product_id, self.program_name, user_id, LegacyEventFunction.UPDATE))
        events.append(generate_prmm(goods_product.product_id, self.program_name, user_id, LegacyEventFunction.UPDATE))
        events.append(generate_gpdm(goods_product.product_id, self.program_name, user_id, LegacyEventFunction.UPDATE))
        return events

    def set_update_fields(self, goods_product: GoodsProduct) -> GoodsProduct:
        goods_product.last_system_update_id = self.system_id
        goods_product.last_update_user_id = self.user_id
        goods_product.last_update_ts = utc_now()
        return goods_product


def _user_id_error(user_id: Optional[str]) -> Optional[str]:
    if user_id is None or not str(user_id).strip():
        return "User ID cannot be empty."
    return None


class TaxCategoryMaintenance:
    """Maintains the Vertex tax category of goods products."""

    def __init__(self, db: Session):
        self.db = db

    def handle_tax_category(self, product_id: int, vertex_tax_category: Optional[str], user_id: str) -> int:
        """Apply a requested tax category to one product, if one was requested."""
        if vertex_tax_category is None:
            return 0

        logger.info("Updating tax category of product %d to '%s'.", product_id, vertex_tax_category)
        return self.set_tax_category(
            [GoodsProduct(product_id=product_id, vertex_tax_category=vertex_tax_category)], user_id
        )

    def set_tax_category(self, goods_products: Sequence[GoodsProduct], user_id: str) -> int:
        """
        Set the tax category for a list of products.

        The GoodsProduct objects passed in are detached carriers holding just
        product_id and vertex_tax_category.
        """
        for goods_product in goods_products:
            self.validate(goods_product, user_id)

        utils = ProductMaintenanceUtils(self.db, user_id)

        def mapper(requested: GoodsProduct) -> Optional[GoodsProduct]:
            existing = self.db.get(GoodsProduct, requested.product_id)
            if existing is None:
                logger.info("Attempt to update Vertex tax category of %s, but it does not exist.",
                            requested.product_id)
                return None
            if existing.vertex_tax_category == requested.vertex_tax_category:
                return None
            existing.vertex_tax_category = requested.vertex_tax_category
            return existing

        def updater(to_update: List[GoodsProduct]) -> None:
            self.db.flush()
            logger.info("%d tax categories updated.", len(to_update))

        return utils.do_goods_product_update(goods_products, mapper, updater)

    def validate(self, goods_product: GoodsProduct, user_id: Optional[str]) -> None:
        errors = []

        user_error = _user_id_error(user_id)
        if user_error:
            errors.append(user_error)

        if goods_product.product_id is None:
            errors.append("Product ID cannot be empty.")

        if goods_product.vertex_tax_category is None:
            errors.append("Cannot set Vertex tax category to empty.")

        if errors:
            raise ValidationError("Unable to validate tax category update request.", errors)


class SelfManufacturedMaintenance:
    """Maintains the self-manufactured switch of goods products."""

    def __init__(self, db: Session):
        self.db = db

    def handle_self_manufactured(self, product_id: int, self_manufactured: Optional[bool], user_id: str) -> int:
        if self_manufactured is None:
            return 0

        switch = YES if self_manufactured else NO
        logger.info("Updating self-manufactured flag of product %d to '%s'.", product_id, switch)
        return self.set_self_manufactured(
            [GoodsProduct(product_id=product_id, self_manufactured=switch)], user_id
        )

    def set_self_manufactured(self, goods_products: Sequence[GoodsProduct], user_id: str) -> int:
        for goods_product in goods_products:
            self.validate(goods_product, user_id)

        utils = ProductMaintenanceUtils(self.db, user_id)

        def mapper(requested: GoodsProduct) -> Optional[GoodsProduct]:
            existing = self.db.get(GoodsProduct, requested.product_id)
            if existing is None:
                logger.info("Attempt to update self manufactured flag of %s, but it does not exist.",
                            requested.product_id)
                return None
            if existing.self_manufactured == requested.self_manufactured:
                return None
            existing.self_manufactured = requested.self_manufactured
            return existing

        def updater(to_update: List[GoodsProduct]) -> None:
            self.db.flush()
            logger.info("%d self manufactured flags updated.", len(to_update))

        return utils.do_goods_product_update(goods_products, mapper, updater)

    def validate(self, goods_product: GoodsProduct, user_id: Optional[str]) -> None:
        errors = []

        user_error = _user_id_error(user_id)
        if user_error:
            errors.append(user_error)

        if goods_product.product_id is None:
            errors.append("Product ID cannot be empty.")

        if goods_product.self_manufactured is None:
            errors.append("Cannot set self-manufactured to empty.")
        elif goods_product.self_manufactured not in (YES, NO):
            errors.append("Self-manufactured must be Y or N.")

        if errors:
            raise ValidationError("Unable to validate request to change self-manufactured flag.", errors)
