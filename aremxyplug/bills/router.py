import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from aremxyplug.bills.exceptions import (
    DuplicateRequestError,
    PurchaseFailedError,
    PurchaseValidationError,
    TransactionNotFoundError,
)
from aremxyplug.bills.families import ALL_FAMILIES, BillFamily
from aremxyplug.bills.handler import PurchaseHandler
from aremxyplug.core.dependencies import get_purchase_handler
from aremxyplug.exceptions import AremxyDBException

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def build_bill_router(family: BillFamily) -> APIRouter:
    """Create the purchase, lookup and listing routes for one bill family."""
    router = APIRouter(prefix=family.route_prefix, tags=[family.name])
    handler_dependency = get_purchase_handler(family)

    @router.post("/")
    async def create_purchase(
        payload: Dict[str, Any] = Body(...),
        handler: PurchaseHandler = Depends(handler_dependency),
    ):
        """Submit a purchase. Replaying a request_id returns the stored record."""
        try:
            record = await handler.purchase(payload)
            return record.model_dump(mode="json")
        except PurchaseValidationError as e:
            return JSONResponse(status_code=422, content=jsonable_encoder({"detail": e.detail, "errors": e.errors}))
        except DuplicateRequestError as e:
            raise HTTPException(status_code=409, detail=e.detail)
        except PurchaseFailedError as e:
            logger.warning(f"{family.name} purchase failed: {e.detail}")
            return JSONResponse(
                status_code=502,
                content={"detail": e.detail, "record": e.record.model_dump(mode="json")},
            )
        except AremxyDBException as e:
            logger.error(f"Database error during {family.name} purchase: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error: could not store the transaction.")

    @router.get("/transactions")
    async def list_transactions(
        user: str = Query(..., min_length=1, description="Email, phone number or account reference"),
        handler: PurchaseHandler = Depends(handler_dependency),
    ) -> List[Dict[str, Any]]:
        """List a user's transactions in the order they were created."""
        try:
            records = await handler.list_for_user(user)
            return [record.model_dump(mode="json") for record in records]
        except AremxyDBException as e:
            logger.error(f"Database error listing {family.name} transactions: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error: could not list transactions.")

    @router.get("/{identifier}")
    async def get_transaction(
        identifier: str,
        handler: PurchaseHandler = Depends(handler_dependency),
    ) -> Dict[str, Any]:
        """Fetch a transaction by provider transaction id or by request id."""
        try:
            record = await handler.get(identifier)
            return record.model_dump(mode="json")
        except TransactionNotFoundError as e:
            raise HTTPException(status_code=404, detail=e.detail)
        except AremxyDBException as e:
            logger.error(f"Database error fetching {family.name} transaction: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error: could not fetch the transaction.")

    return router


router = APIRouter(prefix=API_PREFIX)
for _family in ALL_FAMILIES:
    router.include_router(build_bill_router(_family))
