"""Ledger models package."""

from delivery_ledger.models.app_setting import AppSetting, ThemeToken
from delivery_ledger.models.company import Company
from delivery_ledger.models.order import OpenedOrder, Order

__all__ = ["AppSetting", "Company", "OpenedOrder", "Order", "ThemeToken"]
