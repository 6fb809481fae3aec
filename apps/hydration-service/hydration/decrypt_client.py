"""HTTP client for a remote decrypting boundary (service-to-service)."""

import asyncio
import logging

import httpx

from .config import (
    DECRYPT_BACKOFF_SECONDS,
    DECRYPT_MAX_ATTEMPTS,
    DECRYPT_TIMEOUT_SECONDS,
    DECRYPT_URL,
    INTERNAL_API_KEY,
)
from .errors import AuthenticationError, FormatError, TransportError

logger = logging.getLogger(__name__)


class DecryptClient:
    """POSTs wire values to ``{base_url}/decrypt``.

    Network errors, timeouts and 5xx responses are retried with exponential
    backoff up to ``max_attempts``; other non-success responses fail at once.
    Either way the caller only ever sees ``TransportError``.
    """

    def __init__(
        self,
        base_url: str = DECRYPT_URL,
        api_key: str = INTERNAL_API_KEY,
        max_attempts: int = DECRYPT_MAX_ATTEMPTS,
        backoff_seconds: float = DECRYPT_BACKOFF_SECONDS,
        timeout: float = DECRYPT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.timeout = timeout
        self._headers = {"X-Internal-Api-Key": api_key}
        self._transport = transport

    async def _post(self, data) -> httpx.Response:
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    resp = await client.post(
                        f"{self.base_url}/decrypt",
                        json={"data": data},
                        headers=self._headers,
                    )
            except httpx.TransportError as e:
                last_error = e
                logger.warning(
                    f"Decrypt request attempt {attempt}/{self.max_attempts} failed: {e!r}"
                )
            else:
                if resp.status_code < 500:
                    return resp
                last_error = TransportError(f"HTTP {resp.status_code}")
                logger.warning(
                    f"Decrypt request attempt {attempt}/{self.max_attempts} "
                    f"returned HTTP {resp.status_code}"
                )
            if attempt < self.max_attempts:
                await asyncio.sleep(self.backoff_seconds * 2 ** (attempt - 1))
        raise TransportError(
            f"Decrypting boundary unavailable after {self.max_attempts} attempts: {last_error}"
        )

    @staticmethod
    def _json(resp: httpx.Response) -> dict:
        if resp.status_code >= 400:
            raise TransportError(
                f"Decrypting boundary rejected request: HTTP {resp.status_code}"
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError("Decrypt response is not JSON") from e
        if not isinstance(body, dict):
            raise TransportError("Decrypt response is not a JSON object")
        return body

    async def decrypt_one(self, wire: str) -> str:
        """Decrypt a single value.

        The boundary answers 400 for malformed wire text and 422 for a tag
        that does not verify; those surface as FormatError and
        AuthenticationError rather than transport failures.
        """
        resp = await self._post(wire)
        if resp.status_code == 400:
            raise FormatError("Decrypting boundary rejected the value format")
        if resp.status_code == 422:
            raise AuthenticationError("Decrypting boundary could not authenticate the value")
        decrypted = self._json(resp).get("decrypted")
        if not isinstance(decrypted, str):
            raise TransportError("Malformed decrypt response")
        return decrypted

    async def decrypt_batch(self, wires: list[str]) -> list[str | None]:
        """Decrypt an ordered list in one round trip; ``None`` marks a failed item."""
        if not wires:
            return []
        decrypted = self._json(await self._post(list(wires))).get("decrypted")
        if not isinstance(decrypted, list) or len(decrypted) != len(wires):
            raise TransportError("Decrypt response does not match request length")
        if not all(d is None or isinstance(d, str) for d in decrypted):
            raise TransportError("Malformed decrypt response")
        return decrypted
