from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from link_preview.models.base import Base


class IconRecord(Base):
    __tablename__ = "icon_cache"

    host: Mapped[str] = mapped_column(primary_key=True)
    # NULL marks a lookup that found no icon
    ref: Mapped[Optional[str]]
    fetched_at: Mapped[int] = mapped_column(BigInteger)
