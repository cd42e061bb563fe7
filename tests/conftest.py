import os
from typing import Any, AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from aremxyplug.core.dependency_container import DependencyContainer
from aremxyplug.db import sqlmodel_models  # noqa: F401 - Ensure models are registered
from aremxyplug.settings import Settings

# Variables a developer's .env could leak into unit tests
_ISOLATED_ENV_VARS = (
    "DATABASE_URL",
    "DB_USER",
    "DB_PASSWORD",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "MAIN_DB_POOL_MIN_SIZE",
    "MAIN_DB_POOL_MAX_SIZE",
    "VTPASS_BASE_URL",
    "VTPASS_API_KEY",
    "VTPASS_SECRET_KEY",
    "VTU_BASE_URL",
    "VTU_API_TOKEN",
    "PROVIDER_TIMEOUT_SECONDS",
    "REJECT_DUPLICATE_REQUESTS",
    "LOKI_URL",
    "RUN_MODE",
)


@pytest.fixture(autouse=True)
def isolated_environment():
    """AUTOUSE: Runs each test against a predictable environment and restores the original afterwards."""
    original_environ = os.environ.copy()
    for name in _ISOLATED_ENV_VARS:
        os.environ.pop(name, None)
    os.environ.update(
        {
            "VTPASS_API_KEY": "test-api-key",
            "VTPASS_SECRET_KEY": "test-secret-key",
            "VTU_API_TOKEN": "test-vtu-token",
            "RUN_MODE": "test",
        }
    )

    yield

    os.environ.clear()
    os.environ.update(original_environ)


@pytest.fixture
def mock_settings() -> MagicMock:
    """Provides a mock Settings instance."""
    settings = MagicMock(spec=Settings)
    settings.get_reject_duplicate_requests.return_value = False
    settings.get_vtpass_base_url.return_value = "https://vtpass.test/api"
    settings.get_vtu_base_url.return_value = "https://vtu.test/api"
    settings.get_vtpass_api_key.return_value = "test-api-key"
    settings.get_vtpass_secret_key.return_value = "test-secret-key"
    settings.get_vtu_api_token.return_value = "test-vtu-token"
    settings.get_provider_timeout_seconds.return_value = 60.0
    return settings


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """Provides a mock httpx.AsyncClient instance."""
    client = AsyncMock(spec=httpx.AsyncClient)
    return client


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Provides a mock SQLAlchemy AsyncSession instance."""
    session = AsyncMock(spec=AsyncSession)
    return session


@pytest.fixture
def mock_db_session_factory(mock_db_session: AsyncMock) -> MagicMock:
    """Provides a mock database session factory context manager."""
    mock_factory = MagicMock()

    mock_async_context_manager = AsyncMock()
    mock_async_context_manager.__aenter__.return_value = mock_db_session
    mock_async_context_manager.__aexit__.return_value = None

    mock_factory.return_value = mock_async_context_manager

    return mock_factory


@pytest.fixture
def mock_container(
    mock_settings: MagicMock,
    mock_http_client: AsyncMock,
    mock_db_session_factory: MagicMock,
) -> MagicMock:
    """Provides a mock DependencyContainer instance."""
    container = MagicMock(spec=DependencyContainer)
    container.settings = mock_settings
    container.http_client = mock_http_client
    container.db_session_factory = mock_db_session_factory
    container.providers = {}
    return container


# --- In-memory database ---


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """In-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """In-memory SQLite async session for testing."""
    async_session_factory = async_sessionmaker(async_engine, expire_on_commit=False)

    async with async_session_factory() as session:
        yield session


# --- Sample purchase payloads and provider responses ---


@pytest.fixture
def electricity_payload() -> Dict[str, Any]:
    return {"meter_no": "1234567890", "disco_type": "IKEDC", "amount": 5000, "request_id": "req-1"}


@pytest.fixture
def electricity_provider_response() -> Dict[str, Any]:
    return {
        "code": "000",
        "transactions": {"status": "completed", "product_name": "Prepaid Token", "transactionId": "TX-99"},
        "amount": 5000,
    }


@pytest.fixture
def data_payload() -> Dict[str, Any]:
    return {
        "request_id": "data-req-1",
        "amount": 260,
        "network": "MTN",
        "phone_number": "08012345678",
        "plan_code": "7",
        "email": "Ada@Example.com",
    }


@pytest.fixture
def data_provider_response() -> Dict[str, Any]:
    return {
        "id": 81913,
        "ident": "Data6d1e87f2b8c31",
        "network": 1,
        "mobile_number": "08012345678",
        "plan": 7,
        "Status": "successful",
        "plan_network": "MTN",
        "plan_name": "1.0GB",
        "plan_amount": "260.0",
        "create_date": "2025-03-12T16:34:12.412Z",
        "Ported_number": True,
    }


@pytest.fixture
def airtime_payload() -> Dict[str, Any]:
    return {"request_id": "air-req-1", "amount": 100, "network": "AIRTEL", "phone_number": "08098765432"}


@pytest.fixture
def airtime_provider_response() -> Dict[str, Any]:
    return {
        "id": 5521,
        "ident": "Airtime1f2e3d4c",
        "Status": "successful",
        "plan_network": "AIRTEL",
        "amount": "100",
        "paid_amount": "98.0",
        "airtime_type": "VTU",
        "mobile_number": "08098765432",
        "create_date": "2025-03-12T16:40:00.000Z",
    }


@pytest.fixture
def education_payload() -> Dict[str, Any]:
    return {
        "request_id": "edu-req-1",
        "amount": 3400,
        "exam_type": "waecdirect",
        "quantity": 2,
        "phone": "08011111111",
    }


@pytest.fixture
def education_provider_response() -> Dict[str, Any]:
    return {
        "code": "000",
        "content": {
            "transactions": {
                "status": "delivered",
                "product_name": "WAEC Result Checker PIN",
                "unique_element": "08011111111",
                "unit_price": 1700,
                "quantity": 2,
                "commission": 0,
                "transactionId": "EDU-TX-1",
            }
        },
        "response_description": "TRANSACTION SUCCESSFUL",
        "requestId": "edu-req-1",
        "amount": 3400,
        "transaction_date": {"date": "2025-03-12 16:50:00.000000"},
        "cards": [{"Serial": "WRN182134515", "Pin": "123456789012"}, {"Serial": "WRN182134516", "Pin": "210987654321"}],
    }


@pytest.fixture
def tv_payload() -> Dict[str, Any]:
    return {
        "request_id": "tv-req-1",
        "amount": 1850,
        "decoder_type": "DSTV",
        "smartcard_number": "7033211111",
        "bouquet_code": "dstv-padi",
        "email": "viewer@example.com",
    }


@pytest.fixture
def tv_provider_response() -> Dict[str, Any]:
    return {
        "code": "000",
        "content": {
            "transactions": {
                "status": "delivered",
                "product_name": "DSTV Subscription",
                "unique_element": "7033211111",
                "unit_price": 1850,
                "commission": 27.75,
                "transactionId": "TV-TX-1",
            }
        },
        "response_description": "TRANSACTION SUCCESSFUL",
        "requestId": "tv-req-1",
        "amount": 1850,
        "transaction_date": "2025-03-12 17:00:00",
    }


@pytest.fixture
def smile_payload() -> Dict[str, Any]:
    return {
        "request_id": "smile-req-1",
        "amount": 1000,
        "account_id": "08011223344",
        "plan_code": "624",
        "email": "ada@example.com",
    }


@pytest.fixture
def smile_provider_response() -> Dict[str, Any]:
    return {
        "code": "000",
        "content": {
            "transactions": {
                "status": "delivered",
                "product_name": "Smile Payment",
                "unique_element": "08011223344",
                "unit_price": 1000,
                "commission": 40,
                "transactionId": "SMILE-TX-1",
            }
        },
        "response_description": "TRANSACTION SUCCESSFUL",
        "requestId": "smile-req-1",
        "amount": 1000,
        "transaction_date": {"date": "2025-03-12 17:10:00.000000"},
    }


@pytest.fixture
def spectranet_payload() -> Dict[str, Any]:
    return {
        "request_id": "spn-req-1",
        "amount": 7000,
        "phone_number": "08099887766",
        "plan_code": "spectranet-7000",
    }


@pytest.fixture
def spectranet_provider_response() -> Dict[str, Any]:
    return {
        "code": "000",
        "content": {
            "transactions": {
                "status": "delivered",
                "product_name": "Spectranet Internet Data",
                "unique_element": "08099887766",
                "unit_price": 7000,
                "quantity": 1,
                "commission": 0,
                "transactionId": "SPN-TX-1",
            }
        },
        "response_description": "TRANSACTION SUCCESSFUL",
        "requestId": "spn-req-1",
        "amount": 7000,
        "transaction_date": {"date": "2025-03-12 17:20:00.000000"},
        "cards": [{"serialNumber": "SPN0012345", "pin": "4321987654", "expiresOn": "2025-09-12"}],
    }
