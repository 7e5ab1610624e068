"""Mock services for testing."""

from wa_panel.tests.mocks.mock_services import (
    ManualSleep,
    MockAccountService,
    MockApiClient,
)

__all__ = [
    "ManualSleep",
    "MockAccountService",
    "MockApiClient",
]
