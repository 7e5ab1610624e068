"""Pytest fixtures for panel tests."""

from typing import AsyncGenerator, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from wa_panel.config import Settings
from wa_panel.dependencies import get_account_service, get_api_client
from wa_panel.server import create_app
from wa_panel.services.chat_relay import ChatRelay
from wa_panel.services.scheduler import AutoCloseScheduler
from wa_panel.tests.mocks.mock_services import (
    ManualSleep,
    MockAccountService,
    MockApiClient,
)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's environment."""
    return Settings(
        api_base_url="http://api.test",
        session_secret_key="test-secret-key-with-enough-length",
        empresa_id_fallback="1",
        enable_monitoring=False,
    )


@pytest.fixture
def mock_api(settings: Settings) -> MockApiClient:
    """Create mock API client."""
    return MockApiClient(settings)


@pytest.fixture
def mock_account_service() -> MockAccountService:
    """Create mock account service."""
    return MockAccountService()


@pytest.fixture
def manual_sleep() -> ManualSleep:
    return ManualSleep()


@pytest.fixture
async def scheduler(manual_sleep: ManualSleep) -> AsyncGenerator[AutoCloseScheduler, None]:
    """Scheduler whose timers only fire when released."""
    scheduler = AutoCloseScheduler(sleep=manual_sleep)
    yield scheduler
    await scheduler.shutdown()


@pytest.fixture
def relay(
    mock_api: MockApiClient, scheduler: AutoCloseScheduler, settings: Settings
) -> ChatRelay:
    """Chat relay wired to the mock API."""
    return ChatRelay(mock_api, scheduler, settings)  # type: ignore[arg-type]


@pytest.fixture
def app(
    settings: Settings,
    mock_api: MockApiClient,
    mock_account_service: MockAccountService,
) -> FastAPI:
    """Application with the remote API replaced by mocks."""
    app = create_app(settings)
    app.dependency_overrides[get_api_client] = lambda: mock_api
    app.dependency_overrides[get_account_service] = lambda: mock_account_service
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Anonymous test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def signed_in_client(client: TestClient) -> TestClient:
    """Test client with a signed-in session."""
    response = client.post(
        "/account/login",
        data={"username": "ops", "password": "secret"},
        follow_redirects=False,
    )
    assert response.status_code == 302
    return client
