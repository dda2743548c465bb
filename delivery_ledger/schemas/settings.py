"""Settings and theme schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class SettingValue(BaseModel):
    key: str
    value: str | None


class SettingUpdate(BaseModel):
    value: str


class BaseTheme(str, Enum):
    """Base palette the custom colour tokens are layered on."""

    LIGHT = "light"
    DARK = "dark"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | None) -> "BaseTheme":
        """Case-insensitive lookup; unknown values fall back to light."""
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.LIGHT


class Theme(BaseModel):
    """Saved theme: base palette, colour tokens and the confetti palette for the editor."""

    base: BaseTheme = BaseTheme.LIGHT
    colors: dict[str, str] = Field(default_factory=dict)
    confetti_colors: list[str] | None = None
