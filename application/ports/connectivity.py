"""
Connectivity Monitor Interface (Port).

The optimistic update manager parks operations while offline and replays them
when the monitor reports the connection is back.
"""
from typing import Callable, Protocol

ConnectivityListener = Callable[[bool], None]


class ConnectivityMonitor(Protocol):
    """Reports whether the server is reachable."""

    @property
    def is_online(self) -> bool:
        ...

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """
        Register a listener called with the new online flag on every change.

        Returns:
            A function that removes the listener.
        """
        ...
