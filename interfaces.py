"""
Abstract interfaces shared by the domain package and the web layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Optional


# Source of "now" for anything that compares timestamps
Clock = Callable[[], datetime]


class MetricsSource(ABC):
    """Interface for components that produce campus readings."""

    @abstractmethod
    def generate(self) -> Dict[str, Any]:
        """Produce a new reading."""
        pass

    @property
    @abstractmethod
    def latest(self) -> Optional[Dict[str, Any]]:
        """Return the last reading produced, if any."""
        pass


class EventPublisher(ABC):
    """Interface for pushing named events to connected clients."""

    @abstractmethod
    def publish(self, event: str, data: Any, to: Optional[str] = None) -> None:
        """Send an event to one connection, or to everyone when `to` is None."""
        pass


class RealtimeServer(ABC):
    """
    Abstract base class for servers that own client connections.
    """

    @abstractmethod
    def start(self) -> None:
        """Start serving clients."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop serving clients."""
        pass
