"""Schema exports."""

from delivery_ledger.schemas.company import (
    CompanyActiveUpdate,
    CompanyCreate,
    CompanyCreated,
    CompanyRead,
    CompanyRename,
)
from delivery_ledger.schemas.dashboard import DashboardPayload, Kpis
from delivery_ledger.schemas.order import (
    OpenedOrderRead,
    OrderCreated,
    OrderDoneUpdate,
    OrderInput,
    OrderRead,
    OrderSummary,
)
from delivery_ledger.schemas.settings import BaseTheme, SettingUpdate, SettingValue, Theme

__all__ = [
    "BaseTheme",
    "CompanyActiveUpdate",
    "CompanyCreate",
    "CompanyCreated",
    "CompanyRead",
    "CompanyRename",
    "DashboardPayload",
    "Kpis",
    "OpenedOrderRead",
    "OrderCreated",
    "OrderDoneUpdate",
    "OrderInput",
    "OrderRead",
    "OrderSummary",
    "SettingUpdate",
    "SettingValue",
    "Theme",
]
