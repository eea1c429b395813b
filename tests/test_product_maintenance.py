"""Tests for product-level (goods product) maintenance."""
import pytest
from sqlalchemy.exc import SQLAlchemyError
from pm_api.core.exceptions import ValidationError
from pm_api.core.legacy_events import LegacyEventProcessor
from pm_api.core.product_maintenance import (
    ProductMaintenanceUtils,
    SelfManufacturedMaintenance,
    TaxCategoryMaintenance,
)
from pm_api.models.legacy_event import LegacyEvent
from pm_api.models.product import GoodsProduct


def failing_add_and_flush(self, events):
    """Writes the events, then fails as a lost connection would."""
    self.db.add_all(list(events))
    self.db.flush()
    raise SQLAlchemyError("connection lost")


def event_codes(db_session):
    return [
        (e.event_code, e.key_data)
        for e in db_session.query(LegacyEvent).order_by(LegacyEvent.event_id)
    ]


class TestProductMaintenanceUtils:
    """The shared update path."""

    def test_updates_and_publishes_events(self, db_session, products):
        utils = ProductMaintenanceUtils(db_session, "TESTUSR", program_name="TESTPGM", system_id=7)
        written = []

        rows = utils.do_goods_product_update(
            db_session.query(GoodsProduct).order_by(GoodsProduct.product_id).all(),
            lambda gp: gp,
            written.extend,
        )

        assert rows == 2
        assert [gp.product_id for gp in written] == [555, 556]
        for gp in written:
            assert gp.last_update_user_id == "TESTUSR"
            assert gp.last_system_update_id == 7
            assert gp.last_update_ts is not None

        # 556 has no primary UPC, so no PSC2 for it
        assert event_codes(db_session) == [
            ("PSC2", "4122000555"),
            ("PRM2", "555"),
            ("PRMM", "555"),
            ("GPDM", "555"),
            ("PRM2", "556"),
            ("PRMM", "556"),
            ("GPDM", "556"),
        ]
        events = db_session.query(LegacyEvent).all()
        assert all(e.function_code == "U" for e in events)
        assert all(e.program_name == "TESTPGM" for e in events)
        assert all(e.user_id == "TESTUSR" for e in events)

    def test_declined_rows_are_skipped(self, db_session, products):
        utils = ProductMaintenanceUtils(db_session, "TESTUSR")
        written = []

        rows = utils.do_goods_product_update(
            db_session.query(GoodsProduct).all(),
            lambda gp: gp if gp.product_id == 556 else None,
            written.extend,
        )

        assert rows == 1
        assert [gp.product_id for gp in written] == [556]
        untouched = db_session.get(GoodsProduct, 555)
        assert untouched.last_update_user_id is None
        assert [code for code, _ in event_codes(db_session)] == ["PRM2", "PRMM", "GPDM"]

    def test_nothing_to_update(self, db_session, products):
        utils = ProductMaintenanceUtils(db_session, "TESTUSR")
        written = []

        rows = utils.do_goods_product_update(
            db_session.query(GoodsProduct).all(), lambda gp: None, written.extend
        )

        assert rows == 0
        assert written == []
        assert db_session.query(LegacyEvent).count() == 0

    def test_failed_update_leaves_nothing_after_rollback(self, db_session, products):
        utils = ProductMaintenanceUtils(db_session, "TESTUSR")

        def mapper(gp):
            gp.vertex_tax_category = "GENERAL"
            return gp

        def updater(rows):
            db_session.flush()
            raise SQLAlchemyError("write failed")

        with pytest.raises(SQLAlchemyError):
            utils.do_goods_product_update(db_session.query(GoodsProduct).all(), mapper, updater)
        db_session.rollback()

        assert [gp.vertex_tax_category for gp in db_session.query(GoodsProduct)] == ["FOOD", "FOOD"]
        assert db_session.query(LegacyEvent).count() == 0

    def test_failed_event_flush_undoes_update(self, db_session, products, monkeypatch):
        monkeypatch.setattr(LegacyEventProcessor, "add_and_flush", failing_add_and_flush)

        with pytest.raises(SQLAlchemyError):
            TaxCategoryMaintenance(db_session).handle_tax_category(555, "GENERAL", "TESTUSR")
        db_session.rollback()

        gp = db_session.get(GoodsProduct, 555)
        assert gp.vertex_tax_category == "FOOD"
        assert gp.last_update_user_id is None
        assert db_session.query(LegacyEvent).count() == 0

    def test_defaults_from_settings(self, db_session, products):
        utils = ProductMaintenanceUtils(db_session, "TESTUSR")

        assert utils.program_name == "PM_API"
        assert utils.system_id == 1


class TestTaxCategoryMaintenance:

    def test_change_tax_category(self, db_session, products):
        rows = TaxCategoryMaintenance(db_session).handle_tax_category(555, "GENERAL", "TESTUSR")
        db_session.commit()

        assert rows == 1
        gp = db_session.get(GoodsProduct, 555)
        assert gp.vertex_tax_category == "GENERAL"
        assert gp.last_update_user_id == "TESTUSR"
        assert [code for code, _ in event_codes(db_session)] == ["PSC2", "PRM2", "PRMM", "GPDM"]

    def test_same_value_is_declined(self, db_session, products):
        rows = TaxCategoryMaintenance(db_session).handle_tax_category(555, "FOOD", "TESTUSR")

        assert rows == 0
        assert db_session.query(LegacyEvent).count() == 0

    def test_no_value_requested(self, db_session, products):
        assert TaxCategoryMaintenance(db_session).handle_tax_category(555, None, "TESTUSR") == 0

    def test_unknown_product_is_declined(self, db_session, products):
        rows = TaxCategoryMaintenance(db_session).set_tax_category(
            [GoodsProduct(product_id=424242, vertex_tax_category="GENERAL")], "TESTUSR"
        )
        assert rows == 0

    def test_validation(self, db_session, products):
        with pytest.raises(ValidationError) as exc_info:
            TaxCategoryMaintenance(db_session).set_tax_category([GoodsProduct()], "TESTUSR")

        assert exc_info.value.errors == [
            "Product ID cannot be empty.",
            "Cannot set Vertex tax category to empty.",
        ]

    def test_user_required(self, db_session, products):
        with pytest.raises(ValidationError) as exc_info:
            TaxCategoryMaintenance(db_session).handle_tax_category(555, "GENERAL", " ")

        assert exc_info.value.errors == ["User ID cannot be empty."]


class TestSelfManufacturedMaintenance:

    def test_set_self_manufactured(self, db_session, products):
        rows = SelfManufacturedMaintenance(db_session).handle_self_manufactured(556, True, "TESTUSR")

        assert rows == 1
        assert db_session.get(GoodsProduct, 556).self_manufactured == "Y"
        assert [code for code, _ in event_codes(db_session)] == ["PRM2", "PRMM", "GPDM"]

    def test_unchanged_flag_is_declined(self, db_session, products):
        rows = SelfManufacturedMaintenance(db_session).handle_self_manufactured(556, False, "TESTUSR")
        assert rows == 0

    def test_invalid_switch(self, db_session, products):
        with pytest.raises(ValidationError) as exc_info:
            SelfManufacturedMaintenance(db_session).set_self_manufactured(
                [GoodsProduct(product_id=555, self_manufactured="X")], "TESTUSR"
            )

        assert exc_info.value.errors == ["Self-manufactured must be Y or N."]


class TestProductEndpoint:
    """PATCH /products/{product_id}."""

    def test_update_both_attributes(self, client, db_session, product_headers, products):
        response = client.patch(
            "/products/555",
            json={"user_id": "TESTUSR", "vertex_tax_category": "GENERAL", "self_manufactured": True},
            headers=product_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "product_id": 555,
            "tax_category_updated": 1,
            "self_manufactured_updated": 1,
        }
        db_session.expire_all()
        gp = db_session.get(GoodsProduct, 555)
        assert gp.vertex_tax_category == "GENERAL"
        assert gp.self_manufactured == "Y"
        assert db_session.query(LegacyEvent).count() == 8

    def test_omitted_fields_left_alone(self, client, db_session, product_headers, products):
        response = client.patch("/products/556", json={"user_id": "TESTUSR", "self_manufactured": True},
                                headers=product_headers)

        assert response.status_code == 200
        assert response.json()["tax_category_updated"] == 0
        db_session.expire_all()
        assert db_session.get(GoodsProduct, 556).vertex_tax_category == "FOOD"

    def test_unknown_product(self, client, product_headers, products):
        response = client.patch("/products/424242", json={"user_id": "TESTUSR", "self_manufactured": True},
                                headers=product_headers)
        assert response.status_code == 404

    def test_requires_authority(self, client, hierarchy_headers, products):
        response = client.patch("/products/555", json={"user_id": "TESTUSR", "self_manufactured": True},
                                headers=hierarchy_headers)
        assert response.status_code == 403

    def test_user_id_required(self, client, product_headers, products):
        response = client.patch("/products/555", json={"self_manufactured": True}, headers=product_headers)
        assert response.status_code == 422

    def test_blank_user_id(self, client, db_session, product_headers, products):
        response = client.patch("/products/555", json={"user_id": "   ", "vertex_tax_category": "GENERAL"},
                                headers=product_headers)

        assert response.status_code == 409
        assert response.json()["errors"] == ["User ID cannot be empty."]
        db_session.expire_all()
        assert db_session.get(GoodsProduct, 555).vertex_tax_category == "FOOD"

    def test_database_failure_returns_500_and_writes_nothing(self, client, db_session, product_headers,
                                                             products, monkeypatch):
        monkeypatch.setattr(LegacyEventProcessor, "add_and_flush", failing_add_and_flush)

        response = client.patch(
            "/products/555",
            json={"user_id": "TESTUSR", "vertex_tax_category": "GENERAL"},
            headers=product_headers,
        )

        assert response.status_code == 500
        assert response.json() == {"detail": "Operation failed."}
        db_session.expire_all()
        assert db_session.get(GoodsProduct, 555).vertex_tax_category == "FOOD"
        assert db_session.query(LegacyEvent).count() == 0
