"""
Tests for boot tasks: settings load, plugin directory, plugin
reconciliation, VM detection and provision status.
"""

import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from errors import BootError, BootErrorCode
from helpers import fake_process
from lunchbox.boot import pipeline
from lunchbox.utils.app_config import SettingsStoreError
from lunchbox.utils.settings import Plugin, Settings, VMStatus


class TestLoadSettings:
    @pytest.mark.asyncio
    async def test_defaults_and_paths(self, ctx, app_config):
        settings = await pipeline.load_settings(ctx)

        assert ctx.settings is settings
        assert settings.plugins == []
        assert settings.views == {"dashboard": {}, "settings": {}}
        assert settings.user_data_path == str(app_config.user_data_dir)
        assert settings.plugins_path == str(Path(app_config.user_data_dir) / "plugins")
        assert "Loading Lunchbox settings." in ctx.sink.get_content()

    @pytest.mark.asyncio
    async def test_keeps_stored_values(self, ctx, store):
        store.data = {
            "plugins": [{"name_nice": "Drush", "path": "/p/drush"}],
            "views": {"dashboard": {"boot_log": "x"}},
        }
        settings = await pipeline.load_settings(ctx)

        assert settings.plugins[0].name_nice == "Drush"
        assert settings.views == {"dashboard": {"boot_log": "x"}}

    @pytest.mark.asyncio
    async def test_store_error_fails(self, ctx, store):
        store.load_error = SettingsStoreError("disk on fire")

        with pytest.raises(BootError) as exc_info:
            await pipeline.load_settings(ctx)

        assert exc_info.value.error_code is BootErrorCode.SETTINGS_LOAD_FAILED
        assert "disk on fire" in str(exc_info.value)
        assert ctx.settings is None

    @pytest.mark.asyncio
    async def test_plugin_without_path_loads_then_is_pruned(self, ctx, store):
        store.data = {"plugins": [{"name_nice": "Old plugin"}]}

        settings = await pipeline.load_settings(ctx)
        assert settings.plugins[0].path is None

        assert await pipeline.check_plugins(ctx) == []
        assert store.saved[-1]["plugins"] == []

    @pytest.mark.asyncio
    async def test_view_state_of_any_shape_loads(self, ctx, store):
        store.data = {"views": {"dashboard": "cached log text", "settings": [1, 2]}}

        settings = await pipeline.load_settings(ctx)

        assert settings.views == {"dashboard": "cached log text", "settings": [1, 2]}

    @pytest.mark.asyncio
    async def test_non_mapping_plugin_records_dropped(self, ctx, store):
        store.data = {"plugins": ["stray", {"name_nice": "Drush", "path": "/p/drush"}]}

        settings = await pipeline.load_settings(ctx)

        assert [p.name_nice for p in settings.plugins] == ["Drush"]


class TestCheckPluginsDir:
    @pytest.mark.asyncio
    async def test_existing_directory_found(self, ctx, tmp_path):
        plugins = tmp_path / "plugins"
        plugins.mkdir()
        ctx.settings = Settings(plugins_path=str(plugins))

        assert await pipeline.check_plugins_dir(ctx) == plugins
        assert f"Found plugins directory: {plugins}." in ctx.sink.get_content()

    @pytest.mark.asyncio
    async def test_missing_directory_created_owner_only(self, ctx, tmp_path):
        plugins = tmp_path / "data" / "plugins"
        ctx.settings = Settings(plugins_path=str(plugins))

        await pipeline.check_plugins_dir(ctx)

        assert plugins.is_dir()
        if os.name == "posix":
            assert plugins.stat().st_mode & 0o077 == 0
        assert f"Created plugins directory: {plugins}." in ctx.sink.get_content()

    @pytest.mark.asyncio
    async def test_creation_failure_names_path(self, ctx, tmp_path):
        blocker = tmp_path / "plugins"
        blocker.write_text("not a directory")
        ctx.settings = Settings(plugins_path=str(blocker))

        with pytest.raises(BootError) as exc_info:
            await pipeline.check_plugins_dir(ctx)

        assert exc_info.value.error_code is BootErrorCode.PLUGINS_DIR_CREATE_FAILED
        assert exc_info.value.summary == f"Could not create plugins directory: {blocker}"

    @pytest.mark.asyncio
    async def test_requires_loaded_settings(self, ctx):
        with pytest.raises(RuntimeError):
            await pipeline.check_plugins_dir(ctx)


class TestCheckPlugins:
    @pytest.mark.asyncio
    async def test_prunes_missing_and_saves_once(self, ctx, store, tmp_path):
        a, c = tmp_path / "a", tmp_path / "c"
        a.mkdir()
        c.mkdir()
        ctx.settings = Settings(plugins=[
            Plugin(name_nice="A", path=str(a)),
            Plugin(name_nice="B", path=str(tmp_path / "b")),
            Plugin(name_nice="C", path=str(c)),
        ])

        found = await pipeline.check_plugins(ctx)

        assert [p.name_nice for p in found] == ["A", "C"]
        assert [p.name_nice for p in ctx.settings.plugins] == ["A", "C"]
        assert len(store.saved) == 1
        assert [p["name_nice"] for p in store.saved[0]["plugins"]] == ["A", "C"]
        content = ctx.sink.get_content()
        assert f"Plugin files not found in {tmp_path / 'b'}. Removing plugin." in content

    @pytest.mark.asyncio
    async def test_file_instead_of_directory_is_removed(self, ctx, tmp_path):
        stray = tmp_path / "plugin.txt"
        stray.write_text("x")
        ctx.settings = Settings(plugins=[Plugin(name_nice="Stray", path=str(stray))])

        assert await pipeline.check_plugins(ctx) == []

    @pytest.mark.asyncio
    async def test_empty_list_does_no_io(self, ctx, store):
        ctx.settings = Settings()
        with patch("lunchbox.boot.pipeline.os.path.isdir") as mock_isdir:
            assert await pipeline.check_plugins(ctx) == []
        mock_isdir.assert_not_called()
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_save_failure_does_not_fail(self, ctx, store, tmp_path):
        store.save_error = SettingsStoreError("read-only")
        ctx.settings = Settings(plugins=[Plugin(name_nice="Gone", path=str(tmp_path / "gone"))])

        assert await pipeline.check_plugins(ctx) == []
        assert ("Could not save plugin list: read-only", "warning") in ctx.sink.entries


def fake_detect(found):
    return patch(
        "lunchbox.boot.pipeline.VMManager.detect",
        new_callable=AsyncMock,
        return_value=found,
    )


class TestDetectVM:
    @pytest.mark.asyncio
    async def test_merges_status_and_persists(self, ctx, store):
        ctx.settings = Settings(vm=VMStatus(needs_reprovision=True, state="stale"))
        found = {
            "id": "d21e8e6", "name": "drupalvm", "state": "poweroff",
            "home": "/home/nate/Projects/drupal-vm", "config": {"vagrant_memory": 2048},
        }
        with fake_detect(found):
            await pipeline.detect_vm(ctx)

        vm = ctx.settings.vm
        assert vm.id == "d21e8e6"
        assert vm.state == "poweroff"
        assert vm.config == {"vagrant_memory": 2048}
        assert vm.needs_reprovision is True
        assert store.saved[-1]["vm"]["home"] == "/home/nate/Projects/drupal-vm"

    @pytest.mark.asyncio
    async def test_not_found_propagates(self, ctx, store):
        ctx.settings = Settings()
        error = BootError(BootErrorCode.VM_NOT_FOUND, summary='Could not find "drupalvm" virtualbox.')
        with patch("lunchbox.boot.pipeline.VMManager.detect", new_callable=AsyncMock, side_effect=error):
            with pytest.raises(BootError) as exc_info:
                await pipeline.detect_vm(ctx)

        assert exc_info.value is error
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_end_to_end_with_streamed_output(self, ctx, tmp_path):
        home = tmp_path / "drupal-vm"
        home.mkdir()
        (home / "config.yml").write_text("vagrant_hostname: drupalvm.dev\nvagrant_memory: 2048\n")
        ctx.settings = Settings()

        output = f"d21e8e6  drupalvm virtualbox running {home}\n"
        with patch("lunchbox.utils.vm_manager.spawn", new_callable=AsyncMock) as mock_spawn:
            mock_spawn.return_value = fake_process(output)
            await pipeline.detect_vm(ctx)

        mock_spawn.assert_awaited_once_with("vagrant", "global-status")
        assert ctx.settings.vm.config == {"vagrant_hostname": "drupalvm.dev", "vagrant_memory": 2048}
        assert ctx.settings.vm.state == "running"
        assert f"d21e8e6  drupalvm virtualbox running {home}" in ctx.sink.get_content()


class TestCheckProvisionStatus:
    @pytest.mark.asyncio
    async def test_notice_shown_once(self, ctx):
        ctx.settings = Settings(vm=VMStatus(needs_reprovision=True))
        notice = MagicMock()
        ctx.on_reprovision_notice = notice

        assert await pipeline.check_provision_status(ctx) is True
        assert await pipeline.check_provision_status(ctx) is True
        notice.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_notice_when_provisioned(self, ctx):
        ctx.settings = Settings()
        notice = MagicMock()
        ctx.on_reprovision_notice = notice

        assert await pipeline.check_provision_status(ctx) is False
        notice.assert_not_called()
        assert "Checking provision status." in ctx.sink.get_content()

    @pytest.mark.asyncio
    async def test_succeeds_without_callback(self, ctx):
        ctx.settings = Settings(vm=VMStatus(needs_reprovision=True))
        assert await pipeline.check_provision_status(ctx) is True
