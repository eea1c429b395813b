"""Outbound notification rows polled by the legacy system."""
import enum
from datetime import datetime
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from pm_api.models.base import Base
from pm_api.core.time import utc_now


class LegacyEventFunction(str, enum.Enum):
    """What happened to the subject of the event."""
    ADD = "A"
    UPDATE = "U"
    DELETE = "D"


class LegacyEventCode(str, enum.Enum):
    """Legacy table/function the event is published for."""
    ENTITY_RELATIONSHIP = "ENRM"
    ENTITY = "ENYM"
    PRODUCT_MASTER = "PRMM"
    PRODUCT_MASTER_2 = "PRM2"
    GOODS_PRODUCT = "GPDM"
    PRODUCT_SCAN_CODE = "PSC2"


class LegacyEvent(Base):
    """A queued change notification. Consumed elsewhere, never read here."""
    __tablename__ = "legacy_events"

    event_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_code: Mapped[str] = mapped_column(String(4), nullable=False, index=True)
    function_code: Mapped[str] = mapped_column(String(1), nullable=False)
    key_data: Mapped[str] = mapped_column(String(100), nullable=False)
    program_name: Mapped[str] = mapped_column(String(20), nullable=False)
    user_id: Mapped[str] = mapped_column(String(20), nullable=False)
    create_ts: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
