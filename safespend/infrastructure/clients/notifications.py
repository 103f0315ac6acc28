"""Local notification bridge HTTP client"""

import httpx
from typing import List, Optional
from safespend.domain.models import PendingNotification, ScheduledReminder
from safespend.domain.exceptions import NotificationServiceError
from safespend.config import settings


class HttpNotificationClient:
    """Client for the host platform's local notification service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.notifier_base_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                data = response.json() if response.content else {}

            except httpx.TimeoutException as e:
                raise NotificationServiceError(f"Notification service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise NotificationServiceError(f"Notification service error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise NotificationServiceError(f"Notification service unreachable: {e}") from e
            except ValueError as e:
                raise NotificationServiceError(f"Invalid response from notification service: {e}") from e

        if not isinstance(data, dict):
            raise NotificationServiceError(
                f"Invalid response from notification service: expected an object, got {type(data).__name__}"
            )
        return data

    async def check_permissions(self) -> bool:
        data = await self._request("GET", "/notifications/permissions")
        return data.get("display") == "granted"

    async def request_permissions(self) -> bool:
        data = await self._request("POST", "/notifications/permissions/request")
        return data.get("display") == "granted"

    async def get_pending(self) -> List[PendingNotification]:
        """
        List notifications currently registered on the device.

        Raises:
            NotificationServiceError: On timeout, HTTP errors, or invalid response
        """
        data = await self._request("GET", "/notifications/pending")
        try:
            return [
                PendingNotification(id=int(item["id"]), marker=item.get("marker"))
                for item in data.get("notifications", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise NotificationServiceError(f"Invalid pending notification data: {e}") from e

    async def cancel(self, ids: List[int]) -> None:
        await self._request("POST", "/notifications/cancel", json={"ids": list(ids)})

    async def schedule(self, notifications: List[ScheduledReminder]) -> None:
        await self._request(
            "POST",
            "/notifications/schedule",
            json={
                "notifications": [
                    {
                        "id": n.id,
                        "title": n.title,
                        "body": n.body,
                        "fire_at": n.fire_at.isoformat(),
                        "marker": n.marker,
                    }
                    for n in notifications
                ]
            },
        )

