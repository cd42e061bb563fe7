# Dependency Injection Container.

from typing import AsyncContextManager, Callable, Dict

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from aremxyplug.providers.base import ProviderClient
from aremxyplug.providers.vtpass import VTPassClient
from aremxyplug.providers.vtu import VTUClient
from aremxyplug.settings import Settings


class DependencyContainer:
    """Holds shared dependencies for the application.

    Keeping every external dependency (HTTP client, database, bill providers) in one place
    makes them easy to replace with mocks in tests.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        db_session_factory: Callable[[], AsyncContextManager[AsyncSession]],
        providers: Dict[str, ProviderClient] | None = None,
    ) -> None:
        """
        Initializes the container.

        Args:
            settings: Application settings.
            http_client: Shared asynchronous HTTP client used by every provider client.
            db_session_factory: A factory function that returns an async context manager
                                yielding an SQLAlchemy AsyncSession.
            providers: Provider client per bill family name. Built from settings when omitted.
        """
        self.settings = settings
        self.http_client = http_client
        self.db_session_factory = db_session_factory
        self.providers = providers if providers is not None else self.create_provider_clients()

    def create_provider_clients(self) -> Dict[str, ProviderClient]:
        """Create one provider client per bill family, all sharing the container's HTTP client."""
        settings = self.settings
        vtpass_base_url = settings.get_vtpass_base_url()
        vtu_base_url = settings.get_vtu_base_url()

        def vtpass() -> VTPassClient:
            return VTPassClient(
                self.http_client,
                vtpass_base_url,
                api_key=settings.get_vtpass_api_key(),
                secret_key=settings.get_vtpass_secret_key(),
            )

        def vtu() -> VTUClient:
            return VTUClient(self.http_client, vtu_base_url, api_token=settings.get_vtu_api_token())

        return {
            "electricity": vtpass(),
            "tv": vtpass(),
            "education": vtpass(),
            "smile": vtpass(),
            "spectranet": vtpass(),
            "data": vtu(),
            "airtime": vtu(),
        }

    def get_provider(self, family_name: str) -> ProviderClient:
        try:
            return self.providers[family_name]
        except KeyError:
            raise KeyError(f"No provider client configured for bill family '{family_name}'")
