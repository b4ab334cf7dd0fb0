"""Repositories: the sole writers to the key-value store.

``EntityRepository`` holds the logic shared by both entity kinds: an id index
mirrored in memory, a single-flight cache and CRUD. ``WorkspaceRepository``
owns one instance per kind, flushes both indexes together and wires the
marshallers to each other (workspaces load their panels, panels link back to
their workspace).
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from vwise.cache import EntityCache
from vwise.errors import Corrupt, InvalidArgument, NotFound, VwiseError
from vwise.ids import IdFactory, new_id
from vwise.marshal import marshal_panel, marshal_workspace, unmarshal_panel, unmarshal_workspace
from vwise.mediator import JsonMediator, MediatorRegistry, PanelContentMediator
from vwise.models import Panel, Workspace
from vwise.store.base import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _encode(data: Any) -> bytes:
    return json.dumps(data, ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class EntityKind(Generic[T]):
    """Everything that differs between the workspace and panel repositories."""

    name: str
    key_prefix: str
    index_key: str
    marshal: Callable[[T], dict[str, Any]]
    # (record, **context) -> entity
    unmarshal: Callable[..., Awaitable[T]]


class EntityRepository(Generic[T]):
    """Index + cache + CRUD for one entity kind."""

    def __init__(
        self,
        store: KeyValueStore,
        kind: EntityKind[T],
        on_index_change: Callable[[], None],
    ) -> None:
        self.store = store
        self.kind = kind
        self._on_index_change = on_index_change
        self._cache: EntityCache[T] = EntityCache(kind.name)
        # records read ahead of their load, consumed by the next _load
        self._peeked: dict[str, dict[str, Any]] = {}
        self._ids: list[str] = self._load_index()

    # ── Index ─────────────────────────────────────────────────

    def _load_index(self) -> list[str]:
        raw = self.store.get(self.kind.index_key)
        if raw is None:
            return []
        try:
            ids = json.loads(raw)
        except ValueError as e:
            raise Corrupt(f"{self.kind.name} index", self.kind.index_key, str(e)) from e
        if not isinstance(ids, list):
            raise Corrupt(f"{self.kind.name} index", self.kind.index_key, "expected a JSON array")
        return [str(i) for i in ids]

    def list_ids(self) -> list[str]:
        return list(self._ids)

    def index_payload(self) -> bytes:
        return _encode(self._ids)

    def __contains__(self, id: object) -> bool:
        return id in self._ids

    # ── Records ───────────────────────────────────────────────

    def key(self, id: str) -> str:
        return f"{self.kind.key_prefix}:{id}"

    def read_record(self, id: str) -> dict[str, Any]:
        """Read and decode the stored record, bypassing the cache."""
        raw = self.store.get(self.key(id))
        if raw is None:
            raise NotFound(self.kind.name, id)
        try:
            return json.loads(raw)
        except ValueError as e:
            raise Corrupt(self.kind.name, id, str(e)) from e

    def peek(self, id: str) -> dict[str, Any]:
        """Read a record and hold it so the next load of ``id`` skips the store."""
        record = self.read_record(id)
        self._peeked[id] = record
        return record

    def discard_peeked(self, id: str) -> None:
        self._peeked.pop(id, None)

    def is_cached(self, id: str) -> bool:
        return id in self._cache

    def cached(self, id: str) -> T | None:
        """The settled, successfully loaded entity for ``id``, if any."""
        entry = self._cache.get(id)
        if entry is None or not entry.done() or entry.cancelled() or entry.exception() is not None:
            return None
        return entry.result()

    def evict(self, id: str) -> None:
        self._cache.clear(id)

    # ── CRUD ──────────────────────────────────────────────────

    async def save(self, entity: T) -> T:
        """Write the record; register the id and memoize the entity if it is new.

        Saving an already indexed id only rewrites its record.
        """
        id = entity.id
        self.store.set(self.key(id), _encode(self.kind.marshal(entity)))

        if id not in self._ids:
            self._cache.fetch_value(id, entity)
            self._ids.append(id)
            self._on_index_change()
            logger.debug("Indexed %s %s", self.kind.name, id)
        return entity

    async def get(self, id: str, **context: Any) -> T:
        entry = self._cache.fetch(id, functools.partial(self._load, id, context))
        # one caller's cancellation must not cancel the shared load
        return await asyncio.shield(entry)

    async def _load(self, id: str, context: dict[str, Any]) -> T:
        try:
            record = self._peeked.pop(id, None)
            if record is None:
                record = self.read_record(id)
            return await self.kind.unmarshal(record, **context)
        except (VwiseError, OSError) as e:
            self._evict(id, e)
            raise
        except Exception as e:
            self._evict(id, e)
            raise Corrupt(self.kind.name, id, str(e)) from e

    def _evict(self, id: str, error: Exception) -> None:
        self._cache.clear(id)
        logger.warning("Failed to load %s %s, evicted: %s", self.kind.name, id, error)

    async def remove(self, entity: T | None) -> None:
        if entity is None:
            raise InvalidArgument(f"no {self.kind.name} provided")
        id = entity.id
        self._cache.clear(id)
        self.store.remove(self.key(id))
        if id in self._ids:
            self._ids.remove(id)
        self._on_index_change()

    def wipe(self) -> None:
        """Delete every indexed record and the index itself."""
        for id in self._ids:
            self.store.remove(self.key(id))
        self.store.remove(self.kind.index_key)
        self._ids = []
        self._peeked.clear()
        self._cache.clear()


class WorkspaceRepository:
    """Persistence for workspaces and their panels over a single key-value store."""

    def __init__(
        self,
        store: KeyValueStore | None,
        mediators: MediatorRegistry | None = None,
        *,
        id_factory: IdFactory = new_id,
        namespace: str = "vwise",
    ) -> None:
        if store is None:
            raise InvalidArgument("A key-value store is required")
        self.store = store
        self.mediators = mediators if mediators is not None else MediatorRegistry([JsonMediator()])
        self._new_id = id_factory
        # panel id -> owning workspace, for panels requested without one
        self._owners: EntityCache[Workspace] = EntityCache("panel owner")

        self.workspaces: EntityRepository[Workspace] = EntityRepository(
            store,
            EntityKind(
                name="workspace",
                key_prefix=f"{namespace}_workspace",
                index_key=f"{namespace}_workspace_ids",
                marshal=marshal_workspace,
                unmarshal=functools.partial(unmarshal_workspace, repo=self),
            ),
            self.sync,
        )
        self.panels: EntityRepository[Panel] = EntityRepository(
            store,
            EntityKind(
                name="panel",
                key_prefix=f"{namespace}_panel",
                index_key=f"{namespace}_panel_ids",
                marshal=marshal_panel,
                unmarshal=functools.partial(unmarshal_panel, repo=self),
            ),
            self.sync,
        )
        logger.debug(
            "Repository opened (%d workspaces, %d panels)",
            len(self.workspaces.list_ids()),
            len(self.panels.list_ids()),
        )

    # ── Workspaces ────────────────────────────────────────────

    def list_workspace_ids(self) -> list[str]:
        return self.workspaces.list_ids()

    async def create_workspace(self, title: str | None = None) -> Workspace:
        workspace = Workspace(self._new_id(), self)
        if title:
            workspace.title = title
        await self.workspaces.save(workspace)
        logger.info("Created workspace %s (%s)", workspace.id, workspace.title)
        return workspace

    async def save_workspace(self, workspace: Workspace) -> Workspace:
        return await self.workspaces.save(workspace)

    async def get_workspace(self, id: str) -> Workspace:
        return await self.workspaces.get(id)

    async def remove_workspace(self, workspace: Workspace | None) -> None:
        """Remove a workspace together with every panel it owns."""
        if workspace is None:
            raise InvalidArgument("no workspace provided")
        for panel in list(workspace.panels.values()):
            await self.panels.remove(panel)
        await self.workspaces.remove(workspace)
        logger.info("Removed workspace %s (%d panels)", workspace.id, len(workspace.panels))

    # ── Panels ────────────────────────────────────────────────

    def list_panel_ids(self) -> list[str]:
        return self.panels.list_ids()

    async def create_panel(
        self,
        mediator: PanelContentMediator,
        workspace: Workspace,
        content: T,
        view_props: dict[str, Any] | None = None,
    ) -> Panel[T]:
        """Create and persist a panel. Registering it with ``workspace`` is the caller's job."""
        if mediator.kind not in self.mediators:
            raise InvalidArgument(
                f"Mediator '{mediator.kind}' not registered. Available: {self.mediators.kinds()}"
            )
        panel: Panel[T] = Panel(self._new_id(), mediator, workspace, content, view_props)
        panel.on_change = functools.partial(self.save_panel, panel)
        await self.panels.save(panel)
        logger.info("Created panel %s (%s) in workspace %s", panel.id, mediator.kind, workspace.id)
        return panel

    async def save_panel(self, panel: Panel) -> Panel:
        return await self.panels.save(panel)

    async def get_panel(self, id: str, workspace: Workspace | None = None) -> Panel:
        """Load a panel linked to ``workspace``.

        Without an owner, a cached panel is returned only while its workspace
        is the one cached under its ``workspace_id``. Otherwise the owning
        workspace is loaded first; loading it links all of its panels,
        including this one.
        """
        if workspace is not None:
            return await self.panels.get(id, workspace=workspace)

        panel = self.panels.cached(id)
        if panel is not None:
            owner = panel.workspace
            if owner is not None and self.workspaces.cached(panel.workspace_id) is owner:
                return panel
            self.panels.evict(id)

        owner = await self._owner_of(id)
        owned = owner.panels.get(id)
        if owned is not None:
            return owned
        # not listed by its workspace record
        panel = await self.panels.get(id, workspace=owner)
        if panel.workspace is not owner:
            self.panels.evict(id)
            panel = await self.panels.get(id, workspace=owner)
        return panel

    async def _owner_of(self, panel_id: str) -> Workspace:
        entry = self._owners.fetch(panel_id, functools.partial(self._load_owner, panel_id))
        return await asyncio.shield(entry)

    async def _load_owner(self, panel_id: str) -> Workspace:
        try:
            record = self.panels.peek(panel_id)
            workspace_id = record.get("workspaceId") if isinstance(record, dict) else None
            if not workspace_id:
                raise Corrupt("panel", panel_id, "missing workspaceId")
            return await self.get_workspace(workspace_id)
        finally:
            self.panels.discard_peeked(panel_id)
            self._owners.clear(panel_id)

    async def remove_panel(self, panel: Panel | None, workspace: Workspace | None = None) -> None:
        """Delete a panel, detaching it from its workspace first."""
        if panel is None:
            raise InvalidArgument("no panel provided")
        owner = workspace if workspace is not None else panel.workspace
        if owner is not None:
            await owner.remove_panel(panel)
        await self.panels.remove(panel)
        logger.info("Removed panel %s", panel.id)

    # ── Index / lifecycle ─────────────────────────────────────

    def sync(self) -> None:
        """Write both id indexes to the store."""
        self.store.set(self.workspaces.kind.index_key, self.workspaces.index_payload())
        self.store.set(self.panels.kind.index_key, self.panels.index_payload())
        logger.debug(
            "Index synced (%d workspaces, %d panels)",
            len(self.workspaces.list_ids()),
            len(self.panels.list_ids()),
        )

    async def reset(self) -> None:
        """Delete all stored data and return to an empty state."""
        self.workspaces.wipe()
        self.panels.wipe()
        self._owners.clear()
        logger.info("Repository reset")
