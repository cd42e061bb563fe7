"""VTpass client: electricity tokens, TV subscriptions, education pins and Smile and Spectranet data."""

import logging
from typing import Any, Dict, Optional

import httpx

from aremxyplug.bills.requests import (
    EducationPurchase,
    ElectricityPurchase,
    PurchaseRequest,
    SmileDataPurchase,
    SpectranetDataPurchase,
    TvPurchase,
)
from aremxyplug.providers.base import HttpProviderClient

logger = logging.getLogger(__name__)

# Distribution company abbreviations to VTpass serviceIDs.
DISCO_SERVICE_IDS = {
    "IKEDC": "ikeja-electric",
    "EKEDC": "eko-electric",
    "AEDC": "abuja-electric",
    "KEDCO": "kano-electric",
    "PHED": "portharcourt-electric",
    "JED": "jos-electric",
    "IBEDC": "ibadan-electric",
    "KAEDCO": "kaduna-electric",
    "EEDC": "enugu-electric",
    "BEDC": "benin-electric",
    "ABA": "aba-electric",
    "YEDC": "yola-electric",
}

DEFAULT_EDUCATION_SERVICE_ID = "waec"
SMILE_SERVICE_ID = "smile-direct"
SPECTRANET_SERVICE_ID = "spectranet"


def disco_service_id(disco_type: str) -> str:
    """Resolve a disco abbreviation ("IKEDC") or a VTpass serviceID ("ikeja-electric") to the serviceID."""
    return DISCO_SERVICE_IDS.get(disco_type.strip().upper(), disco_type.strip().lower())


class VTPassClient(HttpProviderClient):
    name = "vtpass"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        api_key: Optional[str],
        secret_key: Optional[str],
    ) -> None:
        super().__init__(http_client, base_url)
        self.api_key = api_key
        self.secret_key = secret_key

    def _headers(self) -> Dict[str, str]:
        if not self.api_key or not self.secret_key:
            logger.warning("VTPASS_API_KEY or VTPASS_SECRET_KEY is not set; VTpass will reject the request")
        return {"api-key": self.api_key or "", "secret-key": self.secret_key or ""}

    def build_payload(self, request: PurchaseRequest) -> Dict[str, Any]:
        """Translate a purchase request into the body of VTpass's /pay endpoint."""
        payload: Dict[str, Any] = {
            "request_id": request.request_id,
            "amount": request.amount,
            "phone": request.phone or request.account_reference,
        }
        if isinstance(request, ElectricityPurchase):
            payload.update(
                serviceID=disco_service_id(request.disco_type),
                billersCode=request.meter_no,
                variation_code=request.meter_type,
            )
        elif isinstance(request, TvPurchase):
            payload.update(
                serviceID=request.decoder_type,
                billersCode=request.smartcard_number,
                subscription_type=request.subscription_type,
            )
            if request.bouquet_code:
                payload["variation_code"] = request.bouquet_code
        elif isinstance(request, EducationPurchase):
            payload.update(
                serviceID=request.service_id or DEFAULT_EDUCATION_SERVICE_ID,
                variation_code=request.exam_type,
                quantity=request.quantity,
            )
        elif isinstance(request, SmileDataPurchase):
            payload.update(
                serviceID=SMILE_SERVICE_ID,
                billersCode=request.account_id,
                variation_code=request.plan_code,
            )
        elif isinstance(request, SpectranetDataPurchase):
            payload.update(
                serviceID=SPECTRANET_SERVICE_ID,
                billersCode=request.phone_number,
                variation_code=request.plan_code,
                quantity=request.quantity,
            )
        else:
            raise TypeError(f"VTpass does not sell {type(request).__name__}")
        return payload

    async def purchase(self, request: PurchaseRequest) -> Dict[str, Any]:
        return await self._post_json("pay", self.build_payload(request), headers=self._headers())
