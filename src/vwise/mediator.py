"""Panel content mediators and the registry that resolves them by kind."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class PanelContentMediator(Protocol):
    """Interprets a panel's opaque content and converts it to/from JSON-safe data."""

    @property
    def kind(self) -> str: ...

    def marshal(self, content: Any) -> Any:
        """Return a JSON-safe representation of ``content``."""
        ...

    def unmarshal(self, data: Any) -> Any:
        """Rebuild content from what ``marshal`` produced."""
        ...


class JsonMediator:
    """Passthrough mediator for content that is already JSON-safe."""

    def __init__(self, kind: str = "json") -> None:
        self._kind = kind

    @property
    def kind(self) -> str:
        return self._kind

    def marshal(self, content: Any) -> Any:
        return content

    def unmarshal(self, data: Any) -> Any:
        return data


class MediatorRegistry:
    def __init__(self, mediators: list[PanelContentMediator] | None = None) -> None:
        self._mediators: dict[str, PanelContentMediator] = {}
        for mediator in mediators or []:
            self.register(mediator)

    def register(self, mediator: PanelContentMediator) -> None:
        if mediator.kind in self._mediators:
            logger.warning("Replacing mediator for kind: %s", mediator.kind)
        self._mediators[mediator.kind] = mediator
        logger.debug("Registered mediator: %s", mediator.kind)

    def resolve(self, kind: str) -> PanelContentMediator:
        mediator = self._mediators.get(kind)
        if mediator is None:
            raise KeyError(
                f"Mediator '{kind}' not registered. Available: {list(self._mediators)}"
            )
        return mediator

    def kinds(self) -> list[str]:
        return list(self._mediators)

    def __contains__(self, kind: object) -> bool:
        return kind in self._mediators
