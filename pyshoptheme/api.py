"""API client for a store's theme assets."""

from __future__ import annotations

import binascii
import logging
import random
import time
from typing import Any

import httpx

from .budget import BudgetTracker
from .exceptions import (
    ThemeAPIError,
    ThemeAuthenticationError,
    ThemeConfigError,
    ThemeInvalidResponseError,
    ThemeNetworkError,
)
from .models import AssetContent, AssetOpResult, FetchedAsset, content_from_payload
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, extract_error_message

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


class ShopifyThemeClient:
    """Client for the theme asset endpoints of a store.

    Every response, successful or not, is fed to the shared
    :class:`BudgetTracker` before it is returned. Per-asset failures are
    returned as :class:`AssetOpResult` values; only authentication
    failures and failures of the asset listing raise.
    """

    def __init__(
        self,
        store: str,
        api_key: str,
        password: str,
        theme_id: str | int | None = None,
        budget: BudgetTracker | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the theme API client.

        Args:
            store: Store domain (e.g. "example.myshopify.com")
            api_key: Private app API key
            password: Private app password
            theme_id: Optional theme id; the main theme is used when omitted
            budget: Shared budget tracker (a new one is created if omitted)
            max_retries: Maximum number of retries on transport errors
            retry_delay: Initial delay between retries in seconds
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not store or not api_key or not password:
            raise ThemeConfigError(
                "Store, API key and password are required to reach the store."
            )

        self.store = store
        self.api_key = api_key
        self.password = password
        self.theme_id = theme_id
        self.budget = budget or BudgetTracker()
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def base_url(self) -> str:
        return f"https://{self.store}"

    @property
    def asset_path(self) -> str:
        """Path of the asset collection for the configured theme."""
        if self.theme_id not in (None, ""):
            return f"/admin/themes/{self.theme_id}/assets.json"
        return "/admin/assets.json"

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.base_url,
                auth=httpx.BasicAuth(self.api_key, self.password),
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> ShopifyThemeClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with +/- 25% jitter."""
        base_delay = self.retry_delay * (2**attempt)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        """Send a request to the asset endpoint.

        Transport errors are retried with backoff. Whatever status comes
        back is recorded into the budget and the response is returned.

        Raises:
            ThemeAuthenticationError: On 401/403
            ThemeNetworkError: If the request could not be sent after retries
        """
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, self.asset_path, **kwargs)
            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        f"{method} {self.asset_path} failed ({e}), "
                        f"retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)
                    continue
                raise ThemeNetworkError(f"Network error: {e}") from e
            break

        self.budget.record_response(response.headers)
        logger.debug(
            f"{method} {self.asset_path} -> {response.status_code} "
            f"{self.budget.usage()}"
        )

        if response.status_code in (401, 403):
            raise ThemeAuthenticationError(
                "Invalid API key or password, or the app lacks theme access",
                status_code=response.status_code,
                request_id=response.headers.get(REQUEST_ID_HEADER),
            )
        return response

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ThemeInvalidResponseError(
                "Invalid JSON response from store",
                status_code=response.status_code,
                request_id=response.headers.get(REQUEST_ID_HEADER),
            ) from e
        if not isinstance(data, dict):
            raise ThemeInvalidResponseError(
                f"Unexpected response body: {type(data).__name__}",
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def _result(key: str, response: httpx.Response) -> AssetOpResult:
        success = response.is_success
        return AssetOpResult(
            key=key,
            success=success,
            status_code=response.status_code,
            request_id=response.headers.get(REQUEST_ID_HEADER),
            error_detail=None if success else extract_error_message(response),
        )

    # =========================
    # Asset Operations
    # =========================

    def check_config(self) -> bool:
        """Check that the credentials can list the theme's assets."""
        return self._request("GET").status_code == 200

    def list_assets(self) -> list[str]:
        """List all asset keys of the theme.

        Compiled stylesheets are dropped when their Liquid source is
        also listed (``a.css`` is hidden by ``a.css.liquid``).

        Returns:
            Asset keys in the order the store returned them

        Raises:
            ThemeAPIError: If the listing could not be fetched
        """
        response = self._request("GET")
        if not response.is_success:
            raise ThemeAPIError(
                f"Could not list assets: {response.status_code} "
                f"{extract_error_message(response)}".rstrip(),
                status_code=response.status_code,
                request_id=response.headers.get(REQUEST_ID_HEADER),
            )

        assets = self._parse_json(response).get("assets") or []
        keys = [asset["key"] for asset in assets]
        present = set(keys)
        return [
            key
            for key in keys
            if not (key.endswith(".css") and f"{key}.liquid" in present)
        ]

    def get_asset(self, key: str) -> FetchedAsset:
        """Fetch a single asset.

        A non-success status is not an exception: the result is returned
        with no content so the caller can report it.

        Raises:
            ThemeInvalidResponseError: If the asset body cannot be decoded
        """
        response = self._request("GET", params={"asset[key]": key})
        result = self._result(key, response)
        if not result.success:
            return FetchedAsset(result=result)

        asset = self._parse_json(response).get("asset") or {}
        try:
            content = content_from_payload(asset)
        except (binascii.Error, ValueError, TypeError) as e:
            raise ThemeInvalidResponseError(
                f"Could not decode {key}: {e}",
                status_code=response.status_code,
                request_id=result.request_id,
            ) from e
        return FetchedAsset(result=result, content=content)

    def put_asset(self, key: str, content: AssetContent) -> AssetOpResult:
        """Create or replace an asset."""
        payload = {"asset": {"key": key, **content.to_payload()}}
        return self._result(key, self._request("PUT", json=payload))

    def delete_asset(self, key: str) -> AssetOpResult:
        """Delete an asset."""
        payload = {"asset": {"key": key}}
        return self._result(key, self._request("DELETE", json=payload))
