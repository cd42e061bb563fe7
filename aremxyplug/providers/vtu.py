"""VTU client for data bundles and airtime top-ups."""

import logging
from typing import Any, Dict, Optional

import httpx

from aremxyplug.bills.requests import AirtimePurchase, DataPurchase, PurchaseRequest
from aremxyplug.providers.base import HttpProviderClient

logger = logging.getLogger(__name__)

NETWORK_IDS = {"MTN": 1, "GLO": 2, "9MOBILE": 3, "ETISALAT": 3, "AIRTEL": 4}


def network_id(network: str) -> Any:
    """Numeric network id expected by the VTU API. Unknown names are passed through unchanged."""
    return NETWORK_IDS.get(network.strip().upper(), network)


class VTUClient(HttpProviderClient):
    name = "vtu"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, api_token: Optional[str]) -> None:
        super().__init__(http_client, base_url)
        self.api_token = api_token

    def _headers(self) -> Dict[str, str]:
        if not self.api_token:
            logger.warning("VTU_API_TOKEN is not set; the VTU API will reject the request")
        return {"Authorization": f"Token {self.api_token or ''}"}

    async def purchase(self, request: PurchaseRequest) -> Dict[str, Any]:
        if isinstance(request, DataPurchase):
            payload = {
                "network": network_id(request.network),
                "mobile_number": request.phone_number,
                "plan": request.plan_code,
                "Ported_number": True,
            }
            return await self._post_json("data/", payload, headers=self._headers())
        if isinstance(request, AirtimePurchase):
            payload = {
                "network": network_id(request.network),
                "amount": request.amount,
                "mobile_number": request.phone_number,
                "Ported_number": True,
                "airtime_type": request.airtime_type,
            }
            return await self._post_json("topup/", payload, headers=self._headers())
        raise TypeError(f"VTU does not sell {type(request).__name__}")
