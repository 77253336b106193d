"""Storage port implemented by every persistence backend."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from ..errors import StorageError
from ..logging.config import get_storage_logger

T = TypeVar("T")


class StorageBackend(ABC):
    """
    Base class for persistence backends.

    Backends exchange plain JSON-compatible dicts; decoding into domain
    objects is the gateway's job. Every failure surfaces as StorageError.
    """

    name: str = "backend"

    def __init__(self) -> None:
        self.logger = get_storage_logger(f"farmroute.persistence.{self.name}")

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking storage call off the event loop."""
        try:
            return await asyncio.to_thread(func, *args)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(
                f"{self.name} {operation} failed: {e}",
                backend=self.name,
                operation=operation
            ) from e

    @abstractmethod
    async def check(self) -> bool:
        """Return True when the backend can be read and written."""
        pass

    @abstractmethod
    async def load_routes(self) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def save_route(self, route: dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def delete_route(self, route_id: str) -> None:
        pass

    @abstractmethod
    async def load_current_route_id(self) -> Optional[str]:
        pass

    @abstractmethod
    async def save_current_route_id(self, route_id: Optional[str]) -> None:
        """Store the pointer; None clears it."""
        pass

    @abstractmethod
    async def load_sessions(self) -> list[dict[str, Any]]:
        """Every session-like record present, normally zero or one."""
        pass

    @abstractmethod
    async def save_session(self, session: dict[str, Any]) -> None:
        """Replace the active-session slot."""
        pass

    @abstractmethod
    async def clear_session(self) -> None:
        pass

    @abstractmethod
    async def load_runs(self, route_id: Optional[str] = None) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def save_run(self, run: dict[str, Any]) -> None:
        pass
