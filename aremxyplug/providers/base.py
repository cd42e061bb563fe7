import logging
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import httpx

from aremxyplug.bills.exceptions import ProviderTransportError
from aremxyplug.bills.requests import PurchaseRequest

logger = logging.getLogger(__name__)


@runtime_checkable
class ProviderClient(Protocol):
    """Anything that can submit a purchase to an external provider and return its raw JSON response."""

    name: str

    async def purchase(self, request: PurchaseRequest) -> Dict[str, Any]: ...


class HttpProviderClient:
    """Shared POST-and-decode behaviour for providers reached over HTTP.

    No retries are attempted: a purchase that may have reached the provider must not be sent twice.
    """

    name: str = "provider"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _post_json(
        self, path: str, payload: Mapping[str, Any], headers: Optional[Mapping[str, str]] = None
    ) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded JSON object.

        Raises:
            ProviderTransportError: On timeouts, connection errors, non-2xx responses
                and bodies that are not a JSON object.
        """
        url = self._url(path)
        logger.info(f"Sending {self.name} request to {url}")
        try:
            response = await self.http_client.post(url, json=dict(payload), headers=dict(headers or {}))
        except httpx.TimeoutException as e:
            logger.warning(f"{self.name} request to {url} timed out: {e!r}")
            raise ProviderTransportError(f"{self.name} request timed out", provider=self.name) from e
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} request to {url} failed: {e!r}")
            raise ProviderTransportError(
                f"{self.name} request failed: {e.__class__.__name__}", provider=self.name
            ) from e

        if not response.is_success:
            logger.warning(f"{self.name} responded with HTTP {response.status_code}: {response.text[:500]}")
            raise ProviderTransportError(
                f"{self.name} responded with HTTP {response.status_code}",
                provider=self.name,
                http_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError (body is not valid UTF-8) are both ValueErrors
            logger.warning(f"{self.name} returned a non-JSON body: {response.content[:500]!r}")
            raise ProviderTransportError(
                f"{self.name} returned a non-JSON body", provider=self.name, http_status=response.status_code
            ) from e

        if not isinstance(body, dict):
            raise ProviderTransportError(
                f"{self.name} returned JSON that is not an object", provider=self.name, http_status=response.status_code
            )
        logger.debug(f"{self.name} response: {body}")
        return body
