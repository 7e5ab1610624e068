"""Core module - errors, models, results."""

from wa_panel.core.errors import (
    ApiResponseError,
    ApiUnauthorizedError,
    ApiUnavailableError,
    LoginError,
    NotAuthenticatedError,
    PanelError,
)
from wa_panel.core.models import BaseViewModel
from wa_panel.core.results import Outcome, OutcomeKind

__all__ = [
    "ApiResponseError",
    "ApiUnauthorizedError",
    "ApiUnavailableError",
    "BaseViewModel",
    "LoginError",
    "NotAuthenticatedError",
    "Outcome",
    "OutcomeKind",
    "PanelError",
]
