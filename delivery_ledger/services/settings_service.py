"""Application settings helpers."""

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from delivery_ledger.core.errors import translate_db_errors
from delivery_ledger.models import AppSetting
from delivery_ledger.utils.time import format_utc_timestamp, utc_now


def get_setting(db: Session, key: str) -> str | None:
    setting: AppSetting | None = db.get(AppSetting, key)
    return setting.value if setting is not None else None


def set_setting(db: Session, key: str, value: str) -> None:
    """Insert or overwrite one setting and refresh its updated_at."""
    updated_at = format_utc_timestamp(utc_now())
    statement = sqlite_insert(AppSetting).values(key=key, value=value, updated_at=updated_at)
    statement = statement.on_conflict_do_update(
        index_elements=[AppSetting.key],
        set_={"value": statement.excluded.value, "updated_at": statement.excluded.updated_at},
    )
    with translate_db_errors():
        db.execute(statement)
        db.commit()
