"""Workspace and Panel aggregates.

A Workspace owns its panels (``panels``) and keeps their z-order in
``panel_stack``: the tail is the topmost, active panel. A panel that is owned
but absent from the stack is hidden. Structural changes go through the
repository so the persisted record follows the in-memory aggregate.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from vwise.mediator import PanelContentMediator
    from vwise.repository import WorkspaceRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TITLE = "Untitled"

# Bound by the repository; re-saves the panel it belongs to
ChangeHandler = Callable[[], Awaitable[Any]]


class Panel(Generic[T]):
    """A single content unit inside a workspace."""

    def __init__(
        self,
        id: str,
        mediator: PanelContentMediator,
        workspace: Workspace,
        content: T,
        view_props: dict[str, Any] | None = None,
        on_change: ChangeHandler | None = None,
    ) -> None:
        self.id = id
        self.mediator = mediator
        self.content = content
        self.view_props: dict[str, Any] = dict(view_props or {})
        self.on_change = on_change
        self.attach(workspace)

    def attach(self, workspace: Workspace) -> None:
        """Point the back-reference at ``workspace`` without owning it."""
        self.workspace_id = workspace.id
        self._workspace_ref = weakref.ref(workspace)

    @property
    def workspace(self) -> Workspace | None:
        return self._workspace_ref()

    async def update_content(self, content: T) -> None:
        self.content = content
        await self._changed()

    async def update_view_props(self, **props: Any) -> None:
        self.view_props.update(props)
        await self._changed()

    async def _changed(self) -> None:
        if self.on_change is not None:
            await self.on_change()

    def __repr__(self) -> str:
        return f"Panel(id={self.id!r}, kind={self.mediator.kind!r}, workspace={self.workspace_id!r})"


class Workspace:
    """Top-level container owning a set of panels and their display order."""

    def __init__(self, id: str, repo: WorkspaceRepository, title: str = DEFAULT_TITLE) -> None:
        self.id = id
        self.repo = repo
        self.title = title
        self.panels: dict[str, Panel] = {}
        # z-order, top of the stack at the end
        self.panel_stack: list[Panel] = []

    @property
    def top_panel(self) -> Panel | None:
        return self.panel_stack[-1] if self.panel_stack else None

    async def save(self) -> Workspace:
        return await self.repo.save_workspace(self)

    async def rename(self, title: str) -> None:
        self.title = title
        await self.save()

    async def create_panel(
        self,
        mediator: PanelContentMediator,
        content: T,
        view_props: dict[str, Any] | None = None,
    ) -> Panel[T]:
        """Instantiate a new panel owned by this workspace, placed on top."""
        panel = await self.repo.create_panel(mediator, self, content, view_props)
        self.panels[panel.id] = panel
        self.panel_stack.append(panel)
        await self.save()
        return panel

    async def remove_panel(self, panel: Panel) -> None:
        """Detach ``panel`` from this workspace if it is owned here.

        Only the workspace record is rewritten; deleting the panel record is
        ``WorkspaceRepository.remove_panel``'s job.
        """
        if panel.id not in self.panels:
            return
        del self.panels[panel.id]
        if panel in self.panel_stack:
            self.panel_stack.remove(panel)
        await self.save()

    def activate_panel(self, panel: Panel) -> None:
        """Move an owned panel to the top of the stack, showing it if hidden."""
        if panel.id not in self.panels:
            return
        if panel in self.panel_stack:
            self.panel_stack.remove(panel)
        self.panel_stack.append(panel)

    def hide_panel(self, panel: Panel) -> None:
        """Drop an owned panel from the stack while keeping it in ``panels``."""
        if panel.id in self.panels and panel in self.panel_stack:
            self.panel_stack.remove(panel)

    def __repr__(self) -> str:
        return f"Workspace(id={self.id!r}, title={self.title!r}, panels={len(self.panels)})"
