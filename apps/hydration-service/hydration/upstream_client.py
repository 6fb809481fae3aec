"""HTTP client for the third-party measurement API.

Every call is a GET with a ``Type`` query parameter selecting the operation.
Measurement trees come back still encrypted; see ``orchestrator``.
"""

import logging

import httpx

from .config import UPSTREAM_API_URL, UPSTREAM_TIMEOUT_SECONDS
from .errors import UpstreamError

logger = logging.getLogger(__name__)


class UpstreamClient:
    def __init__(
        self,
        base_url: str = UPSTREAM_API_URL,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def _get(self, params: dict):
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(self.base_url, params=params)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Upstream {params.get('Type')} failed: HTTP {e.response.status_code}")
            raise UpstreamError(
                f"Upstream request failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Upstream {params.get('Type')} failed: {e!r}")
            raise UpstreamError(f"Upstream request failed: {e}") from e

    async def get_user_group(self, cust_id: str) -> str:
        """GET Type=getusergroup — first group of the user, or ''."""
        data = await self._get({"Type": "getusergroup", "CustID": cust_id})
        groups = data.get("Groups") if isinstance(data, dict) else None
        if not groups:
            return ""
        return groups[0] or ""

    async def get_group_data(self, group: str) -> dict:
        """GET Type=getgroupdata — encrypted measurement tree for the group."""
        data = await self._get({"Type": "getgroupdata", "GroupName": group})
        if not isinstance(data, dict):
            raise UpstreamError("Group data is not an object")
        return data

    async def get_nurses(self, group: str) -> dict:
        return await self._get_mapping("getNurseByGroup", group)

    async def get_rooms(self, group: str) -> dict:
        return await self._get_mapping("getRoomByGroup", group)

    async def get_names(self, group: str) -> dict:
        return await self._get_mapping("getNamesByGroup", group)

    async def _get_mapping(self, type_: str, group: str) -> dict:
        data = await self._get({"Type": type_, "GroupName": group})
        if not isinstance(data, dict):
            raise UpstreamError(f"{type_} response is not an object")
        return data
