from datetime import datetime
from sqlalchemy import String, Integer, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from greendata.core.database import Base
from typing import List, Optional
import enum

class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"

ROLE_ENUM = Enum(
    Role,
    name="role",
    native_enum=True,
    values_callable=lambda enum_cls: [e.value for e in enum_cls],
)

class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[Role] = mapped_column(ROLE_ENUM, default=Role.USER)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    files: Mapped[List["FileRecord"]] = relationship(
        "FileRecord", back_populates="owner", passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
