"""User model."""
import enum
from typing import List
from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from pm_api.models.base import Base


class UserRole(str, enum.Enum):
    """User roles."""
    ADMIN = "Admin"
    USER = "User"


class Authority(str, enum.Enum):
    """Authorities granted to users (and client applications)."""
    CUSTOM_HIERARCHY = "CUSTOM_HIERARCHY"
    PRODUCT_MAINTENANCE = "PRODUCT_MAINTENANCE"


class User(Base):
    """User model."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default=UserRole.USER.value)
    # Comma-separated Authority codes
    authorities: Mapped[str] = mapped_column(
        String(500), nullable=False, default="")

    @property
    def authority_list(self) -> List[str]:
        return [a.strip() for a in (self.authorities or "").split(",") if a.strip()]

    def has_authority(self, authority: str) -> bool:
        """Admins hold every authority."""
        if self.role == UserRole.ADMIN.value:
            return True
        return authority in self.authority_list
