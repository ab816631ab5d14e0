"""
Connectivity monitor backed by the API health endpoint.

The optimistic update manager subscribes to a ConnectivityMonitor; this one
decides "online" by probing ``GET /health`` with httpx. Tests and clients
that learn about connectivity some other way can call set_online() directly.
"""
import logging
from typing import Callable, List, Optional

import httpx

from application.ports import ConnectivityListener

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class HealthCheckConnectivityMonitor:
    """ConnectivityMonitor implementation probing a health URL."""

    def __init__(
        self,
        health_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        initially_online: bool = True,
    ):
        self._health_url = health_url
        self._client = client
        self._timeout = timeout
        self._online = initially_online
        self._listeners: List[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as e:
                logger.exception(f"Connectivity listener failed: {e}")

    async def check(self) -> bool:
        """Probe the health URL once and update the online flag."""
        try:
            if self._client is not None:
                response = await self._client.get(self._health_url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self._health_url)
            online = response.status_code < 500
        except httpx.HTTPError as e:
            logger.warning(f"Health probe to {self._health_url} failed: {e}")
            online = False
        self.set_online(online)
        return online
