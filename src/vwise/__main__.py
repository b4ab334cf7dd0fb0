"""Entry point: python -m vwise [list|show|create|remove|reset]

- No args / "list":  List stored workspaces
- "show <id>":       Print a workspace and its panel stack
- "create [title]":  Create an empty workspace
- "remove <id>":     Remove a workspace and the panels it owns
- "reset":           Delete everything in the configured store
"""

from __future__ import annotations

import asyncio
import logging
import sys

from vwise.config import VwiseConfig, load_config
from vwise.errors import VwiseError
from vwise.mediator import JsonMediator, MediatorRegistry
from vwise.repository import WorkspaceRepository
from vwise.store import open_store


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_repository(config: VwiseConfig) -> WorkspaceRepository:
    store = open_store(config.store)
    return WorkspaceRepository(
        store, MediatorRegistry([JsonMediator()]), namespace=config.namespace
    )


async def _list(repo: WorkspaceRepository) -> None:
    ids = repo.list_workspace_ids()
    if not ids:
        print("No workspaces.")
        return
    for workspace_id in ids:
        try:
            workspace = await repo.get_workspace(workspace_id)
        except VwiseError as e:
            print(f"{workspace_id}  <unreadable: {e}>")
            continue
        print(f"{workspace.id}  {workspace.title}  ({len(workspace.panels)} panels)")


async def _show(repo: WorkspaceRepository, workspace_id: str) -> None:
    workspace = await repo.get_workspace(workspace_id)
    print(f"{workspace.title} [{workspace.id}]")
    # top of the stack first
    for panel in reversed(workspace.panel_stack):
        print(f"  {panel.id}  {panel.mediator.kind}")
    hidden = [p for p in workspace.panels.values() if p not in workspace.panel_stack]
    for panel in hidden:
        print(f"  {panel.id}  {panel.mediator.kind}  (hidden)")


async def _create(repo: WorkspaceRepository, title: str | None) -> None:
    workspace = await repo.create_workspace(title)
    print(workspace.id)


async def _remove(repo: WorkspaceRepository, workspace_id: str) -> None:
    workspace = await repo.get_workspace(workspace_id)
    await repo.remove_workspace(workspace)


async def _run(cmd: str, args: list[str], config: VwiseConfig) -> None:
    repo = _build_repository(config)
    if cmd == "list":
        await _list(repo)
    elif cmd == "show":
        await _show(repo, args[0])
    elif cmd == "create":
        await _create(repo, " ".join(args) or None)
    elif cmd == "remove":
        await _remove(repo, args[0])
    elif cmd == "reset":
        await repo.reset()


def _usage() -> None:
    print("Usage: python -m vwise [list|show <id>|create [title]|remove <id>|reset]")
    print("  list    List stored workspaces (default)")
    print("  show    Print a workspace and its panel stack")
    print("  create  Create an empty workspace")
    print("  remove  Remove a workspace and its panels")
    print("  reset   Delete all stored workspaces and panels")


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    cmd = argv[0] if argv else "list"
    args = argv[1:]

    if cmd not in ("list", "show", "create", "remove", "reset") or (
        cmd in ("show", "remove") and not args
    ):
        _usage()
        sys.exit(1)

    config = load_config()
    _setup_logging(config.log_level)

    try:
        asyncio.run(_run(cmd, args, config))
    except VwiseError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
