from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from venue_sync.core.db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # stored as a string, validated against SystemRole in code
    system_role: Mapped[str] = mapped_column(String(32), default="NONE", nullable=False)
