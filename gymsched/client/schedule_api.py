# gymsched/client/schedule_api.py
import httpx
import logging
from typing import Optional, List, Dict, Any

from gymsched.config.settings import get_settings

logger = logging.getLogger(__name__)


class ScheduleApiError(Exception):
    """Non-2xx response or transport failure talking to the schedule API"""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ScheduleApiClient:
    """Async client for the member-facing schedule endpoints"""

    def __init__(
            self,
            token: str,
            base_url: Optional[str] = None,
            timeout: Optional[float] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        base_url = (base_url or settings.CLIENT_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.CLIENT_TIMEOUT_SECONDS
        self.http_client = httpx.AsyncClient(
            base_url=f"{base_url}/gym/schedules",
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self.http_client.aclose()

    async def get_available_schedules(self) -> List[Dict[str, Any]]:
        """Every active schedule of the caller's gym, with availability"""
        return await self._request("GET", "/available")

    async def get_my_schedule(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/my-schedule")

    async def join_timeslot(self, schedule_id: str, timeslot_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/active/{schedule_id}/timeslots/{timeslot_id}/join")

    async def leave_timeslot(self, schedule_id: str, timeslot_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/active/{schedule_id}/timeslots/{timeslot_id}/leave")

    async def _request(self, method: str, path: str) -> Any:
        try:
            response = await self.http_client.request(method, path)
        except httpx.TimeoutException:
            raise ScheduleApiError(f"Request timeout ({self.timeout:g}s)")
        except httpx.RequestError as e:
            raise ScheduleApiError(f"Request error: {str(e)[:200]}")

        if 200 <= response.status_code < 300:
            return response.json()

        detail, code = self._parse_error(response)
        logger.info(f"{method} {path} failed: HTTP {response.status_code} {code or ''}".rstrip())
        raise ScheduleApiError(detail, status_code=response.status_code, code=code)

    @staticmethod
    def _parse_error(response: httpx.Response):
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text[:200]}", None

        if not isinstance(body, dict):
            return f"HTTP {response.status_code}", None
        return body.get("detail") or f"HTTP {response.status_code}", body.get("code")
