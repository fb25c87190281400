from settleup.handlers.basic import basic_router
from settleup.handlers.reminders import reminders_router

__all__ = ["basic_router", "reminders_router"]
