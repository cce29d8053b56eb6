from __future__ import annotations

from decimal import Decimal
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sciencehub.models.base import Base, TimestampMixin

COWORKING_SETTINGS_ID = "main"


class SiteSettings(Base, TimestampMixin):
    """Current settings row holding the nested coworking page document."""

    __tablename__ = "sh_site_settings"

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=COWORKING_SETTINGS_ID)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    coworking_page_settings: Mapped[dict[str, Any] | None] = mapped_column(sa.JSON, nullable=True)
    coworking_backup: Mapped[dict[str, Any] | None] = mapped_column(sa.JSON, nullable=True)


class LegacySiteSettings(Base):
    __tablename__ = "site_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    coworking_header_settings: Mapped[dict[str, Any] | None] = mapped_column(sa.JSON, nullable=True)


class LegacyCoworkingService(Base):
    __tablename__ = "coworking_info_table"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(20), nullable=True)
    period: Mapped[str | None] = mapped_column(String(20), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    main_service: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
