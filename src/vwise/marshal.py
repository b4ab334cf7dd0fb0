"""Bidirectional mapping between aggregates and JSON-safe records.

Records drop everything that cannot be serialized (callbacks, back-references,
the repository) and unmarshalling re-derives it.

    workspace: {"id", "title", "panelIds", "panelOrder"}
    panel:     {"id", "workspaceId", "mediatorKind", "content", "viewProps"}
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any

from vwise.errors import Corrupt, InvalidArgument, NotFound
from vwise.models import DEFAULT_TITLE, Panel, Workspace

if TYPE_CHECKING:
    from vwise.repository import WorkspaceRepository

logger = logging.getLogger(__name__)

WORKSPACE_FIELDS = ("id", "panelIds")
PANEL_FIELDS = ("id", "workspaceId", "mediatorKind")


def _require(record: Any, kind: str, fields: tuple[str, ...]) -> None:
    if not isinstance(record, dict):
        raise Corrupt(kind, "?", f"expected an object, got {type(record).__name__}")
    missing = [f for f in fields if f not in record]
    if missing:
        raise Corrupt(kind, str(record.get("id", "?")), f"missing fields {missing}")


# ── Workspace ─────────────────────────────────────────────

def marshal_workspace(workspace: Workspace) -> dict[str, Any]:
    return {
        "id": workspace.id,
        "title": workspace.title,
        "panelIds": list(workspace.panels),
        "panelOrder": [panel.id for panel in workspace.panel_stack],
    }


async def unmarshal_workspace(record: dict[str, Any], *, repo: WorkspaceRepository) -> Workspace:
    """Rebuild a workspace, loading each owned panel with the workspace as owner.

    Panels are registered only once all of them have loaded. If any fails,
    every panel this load pulled into the cache is evicted so none keeps
    pointing at the discarded workspace.
    """
    _require(record, "workspace", WORKSPACE_FIELDS)
    workspace = Workspace(record["id"], repo, title=record.get("title") or DEFAULT_TITLE)

    panels: list[Panel] = []
    try:
        for panel_id in record["panelIds"]:
            try:
                panels.append(await repo.get_panel(panel_id, workspace))
            except NotFound:
                logger.warning("Workspace %s references missing panel %s, skipping", workspace.id, panel_id)
    except Exception:
        for panel_id in record["panelIds"]:
            repo.panels.evict(panel_id)
        raise

    for panel in panels:
        if panel.workspace is not workspace:
            panel.attach(workspace)
        workspace.panels[panel.id] = panel

    workspace.panel_stack = [
        workspace.panels[panel_id]
        for panel_id in record.get("panelOrder", [])
        if panel_id in workspace.panels
    ]
    return workspace


# ── Panel ─────────────────────────────────────────────────

def marshal_panel(panel: Panel) -> dict[str, Any]:
    return {
        "id": panel.id,
        "workspaceId": panel.workspace_id,
        "mediatorKind": panel.mediator.kind,
        "content": panel.mediator.marshal(panel.content),
        "viewProps": dict(panel.view_props),
    }


async def unmarshal_panel(
    record: dict[str, Any],
    *,
    repo: WorkspaceRepository,
    workspace: Workspace | None = None,
) -> Panel:
    _require(record, "panel", PANEL_FIELDS)
    panel_id = record["id"]
    if workspace is None:
        raise InvalidArgument(f"panel {panel_id} cannot be loaded without its workspace")
    if record["workspaceId"] != workspace.id:
        raise Corrupt("panel", panel_id, f"owned by {record['workspaceId']}, not {workspace.id}")

    try:
        mediator = repo.mediators.resolve(record["mediatorKind"])
    except KeyError as e:
        raise Corrupt("panel", panel_id, str(e.args[0])) from e

    panel = Panel(
        panel_id,
        mediator,
        workspace,
        mediator.unmarshal(record.get("content")),
        record.get("viewProps") or {},
    )
    panel.on_change = functools.partial(repo.save_panel, panel)
    return panel
