"""Key-value stores for application settings and theme tokens."""

from sqlalchemy import Text, text
from sqlalchemy.orm import Mapped, mapped_column

from delivery_ledger.db.base import Base
from delivery_ledger.utils.time import SQLITE_TIMESTAMP_SQL


class AppSetting(Base):
    """Stores key-value settings used by the app."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False, server_default=text(f"({SQLITE_TIMESTAMP_SQL})"))


class ThemeToken(Base):
    """One theme row: `base`, a colour token, or the `confetti` palette JSON."""

    __tablename__ = "theme"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False, server_default=text(f"({SQLITE_TIMESTAMP_SQL})"))
