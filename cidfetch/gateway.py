"""
HTTP client for a content-addressed gateway (IPFS style /ipfs/<cid> paths)
"""
import json
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RESPONSE_SIZE = 50 * 1024 * 1024  # 50MB


class GatewayError(Exception):
    """Gateway returned a response that is not usable content."""

    def __init__(self, message: str, response: httpx.Response = None, code: str = None):
        super().__init__(message)
        self.message = message
        self.response = response
        self.code = code

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class AuthenticationError(GatewayError):
    """Gateway refused access to the content (HTTP 401/403)."""


class GatewayResponse:
    def __init__(
        self,
        cid: str,
        data: Any,
        content_type: str = None,
        status_code: int = 200,
        fetch_time: float = 0.0,
    ):
        """Hold decoded content for a CID along with response metadata."""
        self.cid = cid
        self.data = data
        self.content_type = content_type
        self.status_code = status_code
        self.fetch_time = fetch_time
        self.timestamp = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return f"GatewayResponse(cid={self.cid!r}, content_type={self.content_type!r})"


class GatewayClient:
    def __init__(
        self,
        gateway_url: str,
        jwt: str = None,
        access_token: str = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
        transport: httpx.AsyncBaseTransport = None,
    ):
        """Initialize the gateway client.

        Args:
            gateway_url: Gateway host, with or without scheme.
            jwt: Bearer token sent in the Authorization header.
            access_token: Gateway access token sent as a query parameter.
            timeout: Request timeout in seconds.
            max_response_size: Largest body accepted, in bytes.
            transport: Optional httpx transport, used in tests.
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not gateway_url.startswith(("http://", "https://")):
            gateway_url = f"https://{gateway_url}"

        self.gateway_url = gateway_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.max_response_size = max_response_size

        headers = {
            'User-Agent': 'cidfetch/0.1',
            'Accept': '*/*',
        }
        if jwt:
            headers['Authorization'] = f'Bearer {jwt}'

        self._client = httpx.AsyncClient(
            base_url=self.gateway_url,
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers=headers,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            transport=transport,
        )

    @classmethod
    def from_config(cls, gateway_config: Dict[str, Any], **kwargs) -> "GatewayClient":
        """Build a client from the ``gateway`` section of the configuration."""
        return cls(
            gateway_url=gateway_config.get('url'),
            jwt=gateway_config.get('jwt'),
            access_token=gateway_config.get('access_token'),
            timeout=gateway_config.get('timeout', DEFAULT_TIMEOUT),
            **kwargs,
        )

    async def get(self, cid: str) -> GatewayResponse:
        """Fetch the content for a CID.

        Raises:
            AuthenticationError: the gateway answered 401 or 403.
            GatewayError: any other non-2xx answer or an oversized body.
            httpx.HTTPError: transport failures (timeouts, connection errors).
        """
        params = {}
        if self.access_token:
            params['pinataGatewayToken'] = self.access_token

        start_time = time.time()
        async with self._client.stream("GET", f"/ipfs/{cid}", params=params) as response:
            if response.status_code in (401, 403):
                raise AuthenticationError(
                    f"Authentication Failed: HTTP {response.status_code} for {cid}",
                    response=response,
                )
            if not response.is_success:
                raise GatewayError(
                    f"HTTP {response.status_code} fetching {cid}",
                    response=response,
                )

            content_length = response.headers.get('content-length')
            if content_length and int(content_length) > self.max_response_size:
                raise GatewayError(
                    f"Content too large: {content_length} bytes > {self.max_response_size} bytes",
                    response=response,
                )

            # Content-Length may be absent or wrong, so count what arrives
            content = bytearray()
            async for chunk in response.aiter_bytes(chunk_size=65536):
                content.extend(chunk)
                if len(content) > self.max_response_size:
                    raise GatewayError(
                        f"Content too large: more than {self.max_response_size} bytes",
                        response=response,
                    )
        fetch_time = time.time() - start_time

        content_type = response.headers.get('content-type', '').lower()
        logger.debug("gateway_fetched", cid=cid, status_code=response.status_code,
                     content_type=content_type, size=len(content), fetch_time=fetch_time)

        return GatewayResponse(
            cid=cid,
            data=self._decode(response, bytes(content), content_type),
            content_type=content_type or None,
            status_code=response.status_code,
            fetch_time=fetch_time,
        )

    def _decode(self, response: httpx.Response, content: bytes, content_type: str) -> Any:
        """Decode the body as JSON, text or raw bytes depending on content type."""
        encoding = response.charset_encoding or 'utf-8'

        if 'json' in content_type:
            try:
                return json.loads(content)
            except ValueError:
                logger.warning("gateway_invalid_json", url=str(response.url))
                return content.decode(encoding, errors='replace')

        if content_type.startswith('text/') or 'xml' in content_type:
            return content.decode(encoding, errors='replace')

        return content

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
