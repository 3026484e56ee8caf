"""Unit tests for WorkspaceStore.

Total: 12 tests
"""

from __future__ import annotations

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from apiforge.core.workspace import WorkspaceStore
from apiforge.exceptions import AlreadyExists, ResourceBusy, ValidationFailed


def _populate(workspace: Path) -> None:
    (workspace / "src" / "api").mkdir(parents=True)
    (workspace / "src" / "api" / "client.ts").write_text("export {}")
    (workspace / "package.json").write_text("{}")


class TestPaths:
    def test_workspace_path_is_child_of_root(self, store: WorkspaceStore, workspaces_root: Path):
        assert store.workspace_path("orders-api") == workspaces_root.resolve() / "orders-api"

    @pytest.mark.parametrize("name", ["", "..", "../escape", "nested/name"])
    def test_workspace_path_rejects_escaping_names(self, store: WorkspaceStore, name: str):
        with pytest.raises(ValidationFailed):
            store.workspace_path(name)


class TestCreateAndList:
    async def test_create_workspace_creates_directory_and_root_env(
        self, store: WorkspaceStore, workspaces_root: Path
    ):
        path = await store.create_workspace("orders-api")

        assert path.is_dir()
        assert (workspaces_root / ".env").is_file()
        assert await store.workspace_exists("orders-api") is True

    async def test_create_existing_workspace_fails(self, store: WorkspaceStore):
        await store.create_workspace("orders-api")

        with pytest.raises(AlreadyExists):
            await store.create_workspace("orders-api")

    async def test_list_workspaces_sorted_directories_only(self, store: WorkspaceStore):
        await store.create_workspace("zeta")
        await store.create_workspace("alpha")

        assert await store.list_workspaces() == ["alpha", "zeta"]

    async def test_initialize_creates_missing_root(self, tmp_path: Path):
        store = WorkspaceStore(tmp_path / "fresh" / "workspaces", retry_delay=0)

        await store.initialize()

        assert store.root.is_dir()
        assert (store.root / ".env").is_file()


class TestDeleteWorkspace:
    async def test_delete_missing_workspace_is_noop(self, store: WorkspaceStore):
        await store.delete_workspace("never-created")

    async def test_delete_removes_whole_tree(self, store: WorkspaceStore):
        path = await store.create_workspace("orders-api")
        _populate(path)

        await store.delete_workspace("orders-api")

        assert not path.exists()

    async def test_delete_is_idempotent(self, store: WorkspaceStore):
        path = await store.create_workspace("orders-api")
        _populate(path)

        await store.delete_workspace("orders-api")
        await store.delete_workspace("orders-api")

        assert not path.exists()

    async def test_delete_with_locked_file_reports_blocked_files(self, store: WorkspaceStore):
        path = await store.create_workspace("orders-api")
        _populate(path)
        locked = path / "src" / "api" / "client.ts"

        def _probe(target: Path) -> None:
            if Path(target) == locked:
                raise PermissionError(errno.EACCES, "locked", str(target))

        with patch("apiforge.core.fs.probe_file", side_effect=_probe) as probe:
            with pytest.raises(ResourceBusy) as exc_info:
                await store.delete_workspace("orders-api")

        assert exc_info.value.blocked_files == ["src/api/client.ts"]
        assert exc_info.value.code == "RESOURCE_BUSY"
        assert exc_info.value.http_status == 409
        assert path.exists()
        # Each of the three attempts probes both files.
        assert probe.call_count == 6

    async def test_delete_succeeds_after_lock_released(self, store: WorkspaceStore):
        path = await store.create_workspace("orders-api")
        (path / "only.ts").write_text("x")
        calls = {"n": 0}

        def _probe(target: Path) -> None:
            calls["n"] += 1
            if calls["n"] == 1:
                raise PermissionError(errno.EACCES, "locked", str(target))

        with patch("apiforge.core.fs.probe_file", side_effect=_probe):
            await store.delete_workspace("orders-api")

        assert not path.exists()

    async def test_delete_lock_error_during_removal_becomes_resource_busy(
        self, store: WorkspaceStore
    ):
        path = await store.create_workspace("orders-api")

        with patch(
            "apiforge.core.workspace.shutil.rmtree",
            side_effect=PermissionError(errno.EBUSY, "busy"),
        ) as rmtree:
            with pytest.raises(ResourceBusy) as exc_info:
                await store.delete_workspace("orders-api")

        assert rmtree.call_count == 3
        assert "in use" in exc_info.value.message
        assert path.exists()
