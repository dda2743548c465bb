"""Theme palette storage.

The theme table holds one row per key: ``base`` (light/dark/custom), any number
of colour tokens, and ``confetti`` with the confetti palette as a JSON array.
Files written by older builds may instead carry ``confetti1``..``confetti5``.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from delivery_ledger.core.errors import translate_db_errors
from delivery_ledger.models import ThemeToken
from delivery_ledger.schemas.settings import BaseTheme, Theme

logger = logging.getLogger(__name__)

BASE_KEY: str = "base"
CONFETTI_KEY: str = "confetti"
MAX_CONFETTI_COLORS: int = 5
DEFAULT_CUSTOM_CONFETTI: list[str] = ["#ef4444", "#22c55e", "#3b82f6", "#eab308", "#a855f7"]
LIGHT_CONFETTI: list[str] = ["#000000"]
DARK_CONFETTI: list[str] = ["#ffffff"]


def clean_confetti(colors: list[str]) -> list[str]:
    """Trim, drop blanks and case-insensitive duplicates, keep at most five, preserve order."""
    cleaned: list[str] = []
    seen: set[str] = set()
    for color in colors:
        value = str(color).strip()
        if not value or value.lower() in seen:
            continue
        cleaned.append(value)
        seen.add(value.lower())
        if len(cleaned) == MAX_CONFETTI_COLORS:
            break
    return cleaned


def _is_confetti_key(key: str) -> bool:
    return key.lower().startswith(CONFETTI_KEY)


def _confetti_from_rows(rows: dict[str, str]) -> list[str]:
    for key, value in rows.items():
        if key.lower() != CONFETTI_KEY:
            continue
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.warning("[THEME] ignoring malformed confetti palette %r", value)
            break
        if isinstance(parsed, list):
            return clean_confetti([item for item in parsed if isinstance(item, str)])
        break

    legacy: list[tuple[int, str]] = []
    for key, value in rows.items():
        suffix = key.lower().removeprefix(CONFETTI_KEY)
        if _is_confetti_key(key) and suffix.isdigit():
            legacy.append((int(suffix), value))
    return clean_confetti([value for _, value in sorted(legacy)])


def get_theme(db: Session) -> Theme | None:
    """Return the saved theme, or None when nothing was ever saved."""
    rows = {token.key: token.value for token in db.scalars(select(ThemeToken)).all()}
    if not rows:
        return None

    base_value = next((value for key, value in rows.items() if key.lower() == BASE_KEY), None)
    base = BaseTheme.parse(base_value)
    colors = {key: value for key, value in rows.items() if key.lower() != BASE_KEY and not _is_confetti_key(key)}

    confetti = _confetti_from_rows(rows)
    if not confetti and base is BaseTheme.CUSTOM:
        confetti = list(DEFAULT_CUSTOM_CONFETTI)
    return Theme(base=base, colors=colors, confetti_colors=confetti)


def save_theme(db: Session, theme: Theme) -> None:
    """Replace the whole theme in one transaction."""
    rows: list[dict[str, str]] = [{"key": BASE_KEY, "value": theme.base.value}]
    for key, value in theme.colors.items():
        if key.lower() == BASE_KEY or _is_confetti_key(key):
            continue
        rows.append({"key": key, "value": value})
    if theme.confetti_colors is not None:
        confetti = clean_confetti(theme.confetti_colors)
        if confetti:
            rows.append({"key": CONFETTI_KEY, "value": json.dumps(confetti)})

    with translate_db_errors():
        db.execute(delete(ThemeToken))
        db.execute(insert(ThemeToken), rows)
        db.commit()


def get_confetti_palette(db: Session) -> list[str]:
    """Return the palette actually used for confetti, falling back by base theme."""
    theme = get_theme(db)
    if theme is None:
        return list(LIGHT_CONFETTI)
    if theme.confetti_colors:
        return list(theme.confetti_colors)
    if theme.base is BaseTheme.DARK:
        return list(DARK_CONFETTI)
    if theme.base is BaseTheme.CUSTOM:
        return list(DEFAULT_CUSTOM_CONFETTI)
    return list(LIGHT_CONFETTI)
