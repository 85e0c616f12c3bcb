import asyncio
from typing import Any, Iterable, Optional

import httpx
from request_approval.core.logging import get_logger
from request_approval.domain.schemas import DecisionPayload, Markup, ProductRequest, ReferenceLists
from request_approval.libs.gateway.exceptions import GatewayConflictError, GatewayError, GatewayTimeoutError
from request_approval.libs.gateway.interface import GatewayProvider
from request_approval.libs.gateway.schemas import HttpGatewayConfiguration
from request_approval.libs.gateway.utils import (
    document_to_markup,
    document_to_request,
    documents_to_reference_lists,
    documents_to_skus,
)

logger = get_logger(__name__)


class HttpGatewayProvider(GatewayProvider):
    """
    Request source and decision sink backed by a JSON HTTP API.

    - `GET {requests_path}?status=pending` returns a list of request documents
      (or `{"items": [...]}`)
    - `GET {markups_path}` returns a list of markup documents
    - `POST {decisions_path}` accepts a decision payload; 409 means the
      request was already decided
    - `POST {sku_check_path}` with `{"sku": [...]}` returns the SKUs already in
      the catalogue, as `{"Ack": "Success", "Item": [{"SKU": ...}]}` or a list
    - `GET {brands_path}`, `{suppliers_path}`, `{categories_path}` return the
      catalogue reference lists
    """

    def __init__(self, config: HttpGatewayConfiguration, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        super().__init__(config)
        self.config: HttpGatewayConfiguration = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._client = httpx.AsyncClient(
                base_url=str(self.config.base_url),
                headers=headers,
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._get_client().request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(f"{method} {path} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e

        if response.status_code == httpx.codes.CONFLICT:
            raise GatewayConflictError(self._error_message(response))
        if response.status_code in (httpx.codes.REQUEST_TIMEOUT, httpx.codes.GATEWAY_TIMEOUT):
            raise GatewayTimeoutError(self._error_message(response))
        if response.is_error:
            raise GatewayError(f"{method} {path} returned {response.status_code}: {self._error_message(response)}")

        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return str(body.get("detail") or body.get("message") or body)
        return str(body)

    @staticmethod
    def _documents(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError("Response body is not JSON") from e
        if isinstance(body, dict):
            body = body.get("items", [])
        if not isinstance(body, list):
            raise GatewayError("Expected a list of documents")
        return body

    async def fetch_requests(self) -> list[ProductRequest]:
        response = await self._request("GET", self.config.requests_path, params={"status": "pending"})
        try:
            requests = [document_to_request(document) for document in self._documents(response)]
        except ValueError as e:
            raise GatewayError(f"Invalid product request document: {e}") from e

        logger.info(
            "Fetched product requests",
            extra={"event_type": "gateway_requests_fetched", "count": len(requests)},
        )
        return requests

    async def fetch_markups(self) -> list[Markup]:
        response = await self._request("GET", self.config.markups_path)
        try:
            return [document_to_markup(document) for document in self._documents(response)]
        except ValueError as e:
            raise GatewayError(f"Invalid markup document: {e}") from e

    async def fetch_existing_skus(self, skus: Iterable[str]) -> set[str]:
        candidates = list(dict.fromkeys(skus))
        if not candidates:
            return set()

        response = await self._request("POST", self.config.sku_check_path, json={"sku": candidates})
        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError("SKU check response is not JSON") from e

        if isinstance(body, dict) and "Ack" in body:
            if body["Ack"] != "Success" or not isinstance(body.get("Item"), list):
                raise GatewayError(f"SKU check was not acknowledged: {body.get('Ack')}")
            items = body["Item"]
        else:
            items = self._documents(response)

        existing = documents_to_skus(items) & set(candidates)
        logger.info(
            "Checked SKUs against the catalogue",
            extra={"event_type": "gateway_skus_checked", "count": len(candidates), "existing": len(existing)},
        )
        return existing

    async def fetch_reference_lists(self) -> ReferenceLists:
        brands, suppliers, categories = await asyncio.gather(
            self._request("GET", self.config.brands_path),
            self._request("GET", self.config.suppliers_path),
            self._request("GET", self.config.categories_path),
        )
        return documents_to_reference_lists(
            self._documents(brands), self._documents(suppliers), self._documents(categories)
        )

    async def submit_decision(self, payload: DecisionPayload) -> None:
        await self._request(
            "POST",
            self.config.decisions_path,
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        logger.info(
            "Decision submitted",
            extra={
                "event_type": "gateway_decision_submitted",
                "product_request_id": payload.id,
                "decision": payload.decision.value,
            },
        )

    async def health_check(self) -> bool:
        try:
            await self._request("GET", self.config.requests_path, params={"status": "pending", "limit": 1})
            return True
        except GatewayError:
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
