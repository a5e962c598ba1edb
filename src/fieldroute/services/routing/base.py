"""Base classes for route construction strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...models.domain import Location


class ConstructionStrategy(ABC):
    """Contract for turning an unordered stop set into a visiting sequence."""

    name: str

    @abstractmethod
    def order(
        self,
        locations: Sequence[Location],
        *,
        origin: tuple[float, float],
    ) -> list[Location]:
        raise NotImplementedError
