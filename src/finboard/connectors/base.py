"""
Base connector — interface for dataset sources.

A connector turns one kind of raw export into a :class:`FinancialDataset`.
Reading is synchronous file I/O; :meth:`BaseConnector.pull` runs it off the
event loop so async callers never block on disk.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from finboard.models.financial import FinancialDataset


class BaseConnector(ABC):
    """Abstract base class for dataset connectors.

    Subclasses set ``name`` and implement :meth:`load` and
    :meth:`source_available`.
    """

    name: str = "base"
    description: str = "Base connector"

    @abstractmethod
    def load(self) -> FinancialDataset:
        """Read and normalize the whole dataset."""

    @abstractmethod
    def source_available(self) -> bool:
        """Whether the source can be read at all."""

    async def pull(self) -> FinancialDataset:
        """Async variant of :meth:`load`.

        Raises:
            FileNotFoundError: A required file is missing.
        """
        return await asyncio.to_thread(self.load)

    async def health_check(self) -> dict[str, Any]:
        try:
            healthy = await asyncio.to_thread(self.source_available)
            return {"connector": self.name, "healthy": healthy, "error": None}
        except OSError as e:
            return {"connector": self.name, "healthy": False, "error": str(e)}
