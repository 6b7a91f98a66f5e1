"""Order service HTTP client"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from kitchen_display.config import Settings, settings as default_settings
from kitchen_display.errors import InvalidOrderPayload, OrderServiceError, OrderServiceTimeout
from kitchen_display.schemas.order import (
    AcceptOrderResponse,
    ItemStatus,
    KitchenOrdersResponse,
    Order,
    OrderStatus,
    StatusUpdateResponse,
)

logger = structlog.get_logger()

ORDERS_PATH = "/api/restaurant/kitchen/orders"
ACCEPT_PATH = "/api/restaurant/kitchen/accept"


class OrderServiceClient:
    """
    Client for the external kitchen order service.

    Every call is bounded twice: httpx enforces per-phase timeouts and
    asyncio.wait_for bounds the whole exchange, cancelling the request on
    expiry. Errors surface as OrderServiceTimeout / OrderServiceError /
    InvalidOrderPayload.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        accept_timeout: float = 8.0,
        status_timeout: float = 10.0,
        item_timeout: float = 8.0,
        fetch_timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.accept_timeout = accept_timeout
        self.status_timeout = status_timeout
        self.item_timeout = item_timeout
        self.fetch_timeout = fetch_timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        headers = {"Cache-Control": "no-cache"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, headers=headers)

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "OrderServiceClient":
        return cls(
            base_url=settings.order_service_url,
            token=settings.order_service_token,
            accept_timeout=settings.accept_timeout_seconds,
            status_timeout=settings.status_timeout_seconds,
            item_timeout=settings.item_timeout_seconds,
            fetch_timeout=settings.fetch_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_active_orders(self) -> List[Order]:
        """Bulk read of the restaurant's kitchen orders"""
        data = await self._request("GET", ORDERS_PATH, self.fetch_timeout)
        fetched_at = self.clock()
        try:
            payload = KitchenOrdersResponse.model_validate(data)
            if not payload.success:
                raise OrderServiceError(payload.message or "Failed to fetch orders")
            orders = [record.to_order(fetched_at) for record in payload.orders]
        except ValidationError as e:
            logger.error("Rejected kitchen orders payload", error=str(e))
            raise InvalidOrderPayload(f"Invalid kitchen orders payload: {e.error_count()} errors") from e

        logger.info("Fetched kitchen orders", count=len(orders))
        return orders

    async def accept_order(self, order_id: str) -> datetime:
        """Accept a pending order; returns the server's startedAt"""
        data = await self._request(
            "POST",
            ACCEPT_PATH,
            self.accept_timeout,
            json={"orderId": order_id},
        )
        try:
            return AcceptOrderResponse.model_validate(data).started_at
        except ValidationError as e:
            raise InvalidOrderPayload("Accept response carried no startedAt") from e

    async def patch_order_status(self, order_id: str, status: OrderStatus) -> StatusUpdateResponse:
        data = await self._request(
            "PATCH",
            f"{ORDERS_PATH}/{order_id}/status",
            self.status_timeout,
            json={"status": status.value},
        )
        return self._status_response(data)

    async def patch_item_status(self, order_id: str, item_index: int, status: ItemStatus) -> StatusUpdateResponse:
        data = await self._request(
            "PATCH",
            f"{ORDERS_PATH}/{order_id}/items/{item_index}",
            self.item_timeout,
            json={"status": status.value},
        )
        return self._status_response(data)

    def _status_response(self, data: Any) -> StatusUpdateResponse:
        try:
            response = StatusUpdateResponse.model_validate(data or {})
        except ValidationError as e:
            raise InvalidOrderPayload("Invalid status update response") from e
        if not response.success:
            raise OrderServiceError(response.message or "Order service rejected the update")
        return response

    async def _request(self, method: str, path: str, timeout: float, **kwargs) -> Any:
        logger.debug("Order service request", method=method, path=path, timeout=timeout)
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, timeout=timeout, **kwargs),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning("Order service request timed out", method=method, path=path, timeout=timeout)
            raise OrderServiceTimeout(f"{method} {path} timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("Order service request failed", method=method, path=path, error=str(e))
            raise OrderServiceError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "Order service returned an error",
                method=method,
                path=path,
                status_code=response.status_code,
                detail=detail,
            )
            raise OrderServiceError(detail, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise InvalidOrderPayload(f"{method} {path} returned invalid JSON") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        body: Dict[str, Any] = response.json()
    except ValueError:
        return f"Order service returned {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or f"Order service returned {response.status_code}")
    return f"Order service returned {response.status_code}"
