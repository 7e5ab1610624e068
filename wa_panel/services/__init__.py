"""Services module - remote API access and the chat relay."""

from wa_panel.services.account_service import AccountService
from wa_panel.services.api_client import ApiClient
from wa_panel.services.base import BaseService
from wa_panel.services.chat_relay import ChatRelay
from wa_panel.services.scheduler import AutoCloseScheduler

__all__ = [
    "AccountService",
    "ApiClient",
    "AutoCloseScheduler",
    "BaseService",
    "ChatRelay",
]
