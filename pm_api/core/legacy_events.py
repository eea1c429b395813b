"""Legacy event generation and publishing.

Every change this service makes to product or hierarchy data is mirrored as
one or more rows in ``legacy_events`` so the mainframe-side programs can pick
it up. Events are written in the same transaction as the change itself.
"""
import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from pm_api.core.time import utc_now
from pm_api.models.entity import EntityRelationshipKey
from pm_api.models.legacy_event import LegacyEvent, LegacyEventCode, LegacyEventFunction

logger = logging.getLogger(__name__)


def _generate(event_code: LegacyEventCode, key_data: str, program_name: str, user_id: str,
              function: LegacyEventFunction) -> LegacyEvent:
    return LegacyEvent(
        event_code=event_code.value,
        function_code=function.value,
        key_data=key_data,
        program_name=program_name,
        user_id=user_id,
        create_ts=utc_now(),
    )


def generate_enrm(key: EntityRelationshipKey, program_name: str, user_id: str,
                  function: LegacyEventFunction) -> LegacyEvent:
    """Entity relationship changed."""
    return _generate(LegacyEventCode.ENTITY_RELATIONSHIP, str(key), program_name, user_id, function)


def generate_enym(entity_id: int, program_name: str, user_id: str,
                  function: LegacyEventFunction) -> LegacyEvent:
    """Entity row changed."""
    return _generate(LegacyEventCode.ENTITY, str(entity_id), program_name, user_id, function)


def generate_prmm(product_id: int, program_name: str, user_id: str,
                  function: LegacyEventFunction) -> LegacyEvent:
    return _generate(LegacyEventCode.PRODUCT_MASTER, str(product_id), program_name, user_id, function)


def generate_prm2(product_id: int, program_name: str, user_id: str,
                  function: LegacyEventFunction) -> LegacyEvent:
    return _generate(LegacyEventCode.PRODUCT_MASTER_2, str(product_id), program_name, user_id, function)


def generate_gpdm(product_id: int, program_name: str, user_id: str,
                  function: LegacyEventFunction) -> LegacyEvent:
    return _generate(LegacyEventCode.GOODS_PRODUCT, str(product_id), program_name, user_id, function)


def generate_psc2(upc: int, program_name: str, user_id: str,
                  function: LegacyEventFunction) -> LegacyEvent:
    """Scan code changed. Keyed by UPC rather than product."""
    return _generate(LegacyEventCode.PRODUCT_SCAN_CODE, str(upc), program_name, user_id, function)


class LegacyEventProcessor:
    """Queues legacy events on the caller's session.

    Flushing makes the rows part of the open transaction; committing (or
    rolling back) is left to whoever owns the session.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_and_flush(self, events: Iterable[LegacyEvent]) -> List[LegacyEvent]:
        events = list(events)
        if not events:
            return events
        self.db.add_all(events)
        self.db.flush()
        logger.debug("Queued %d legacy events", len(events))
        return events
