"""
UI-agnostic interface for surfaces that display a rebase plan.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class PresentationSurface(ABC):
    """Abstract receiver of protocol messages from the editor core."""

    @abstractmethod
    async def post_message(self, message: Dict[str, Any]) -> bool:
        """
        Deliver an outbound protocol message to the surface.

        Args:
            message: Message in wire form (``id``, ``method``, ``params``)

        Returns:
            True if the surface accepted the message, False otherwise
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Tear down the surface once the plan has been accepted or aborted."""
        pass
