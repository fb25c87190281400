"""SettleUp: group balances and settle-up reminders."""

__version__ = "0.1.0"
