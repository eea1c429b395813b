"""Tests for legacy event generation."""
from pm_api.core.legacy_events import (
    LegacyEventProcessor,
    generate_enrm,
    generate_enym,
    generate_psc2,
)
from pm_api.models.entity import EntityRelationshipKey
from pm_api.models.legacy_event import LegacyEvent, LegacyEventFunction


class TestGenerators:

    def test_relationship_event_key(self):
        key = EntityRelationshipKey(900, 1000, "CUST1")
        event = generate_enrm(key, "TESTPGM", "TESTUSR", LegacyEventFunction.DELETE)

        assert event.event_code == "ENRM"
        assert event.function_code == "D"
        assert event.key_data == "900|1000|CUST1"
        assert event.program_name == "TESTPGM"
        assert event.create_ts is not None

    def test_entity_and_scan_code_keys(self):
        assert generate_enym(951, "P", "U", LegacyEventFunction.ADD).key_data == "951"
        assert generate_psc2(4122000555, "P", "U", LegacyEventFunction.UPDATE).event_code == "PSC2"


class TestLegacyEventProcessor:

    def test_add_and_flush(self, db_session):
        processor = LegacyEventProcessor(db_session)
        events = processor.add_and_flush([
            generate_enym(1, "P", "U", LegacyEventFunction.ADD),
            generate_enym(2, "P", "U", LegacyEventFunction.ADD),
        ])

        assert len(events) == 2
        assert all(e.event_id is not None for e in events)

        # Flushed, not committed
        db_session.rollback()
        assert db_session.query(LegacyEvent).count() == 0

    def test_nothing_to_add(self, db_session):
        assert LegacyEventProcessor(db_session).add_and_flush([]) == []
