"""
Boot tasks.

Each task takes the shared BootContext, writes progress lines to its status
sink and either returns or raises BootError. They are registered into
operation groups by the main window.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import List

from pydantic import ValidationError

from errors import BootError, BootErrorCode

from ..core.context import BootContext
from ..core.status import SEVERITY_SUCCESS, SEVERITY_WARNING
from ..utils.app_config import SettingsStoreError, get_user_data_dir
from ..utils.settings import Plugin, Settings
from ..utils.vm_manager import VMManager

logger = logging.getLogger(__name__)

PLUGINS_DIR_MODE = 0o700


async def load_settings(ctx: BootContext) -> Settings:
    """Load settings from the store, fill in defaults and derived paths."""
    ctx.sink.append("Loading Lunchbox settings.")
    try:
        data = await asyncio.to_thread(ctx.store.load)
        settings = Settings.from_store(data)
    except (SettingsStoreError, OSError, ValidationError) as e:
        raise BootError(BootErrorCode.SETTINGS_LOAD_FAILED, detail_lines=[str(e)]) from e

    user_data = get_user_data_dir(ctx.config.user_data_dir)
    settings.user_data_path = str(user_data)
    settings.plugins_path = str(user_data / ctx.config.plugins_dir_name)
    ctx.settings = settings
    logger.info("Settings loaded: %d plugin(s)", len(settings.plugins))
    return settings


async def check_plugins_dir(ctx: BootContext) -> Path:
    """Make sure the plugins directory exists, creating it owner-only."""
    path = Path(ctx.require_settings().plugins_path)
    ctx.sink.append("Checking for plugins.")

    if await asyncio.to_thread(path.is_dir):
        ctx.sink.append(f"Found plugins directory: {path}.")
        return path

    ctx.sink.append("Plugins directory not found; attempting to create.")
    try:
        await asyncio.to_thread(path.mkdir, mode=PLUGINS_DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create %s: %s", path, e)
        raise BootError(
            BootErrorCode.PLUGINS_DIR_CREATE_FAILED,
            summary=f"Could not create plugins directory: {path}",
            detail_lines=[f"\t{e}"],
        ) from e

    ctx.sink.append(f"Created plugins directory: {path}.", SEVERITY_SUCCESS)
    return path


async def check_plugins(ctx: BootContext) -> List[Plugin]:
    """
    Drop plugins whose code directory is gone, then persist the list.

    A missing plugin is not a boot failure; it is only removed.
    """
    settings = ctx.require_settings()
    if not settings.plugins:
        return []

    found: List[Plugin] = []
    for plugin in settings.plugins:
        ctx.sink.append(f"Checking plugin: {plugin.name_nice}.")
        if plugin.path and await asyncio.to_thread(os.path.isdir, plugin.path):
            found.append(plugin)
            continue
        ctx.sink.append(
            f"Plugin files not found in {plugin.path}. Removing plugin.", SEVERITY_WARNING
        )

    settings.plugins = found
    try:
        await ctx.save_settings()
    except (SettingsStoreError, OSError) as e:
        ctx.sink.append(f"Could not save plugin list: {e}", SEVERITY_WARNING)
    return found


async def detect_vm(ctx: BootContext) -> Settings:
    """Record id, name, state, home and parsed config of the managed VM."""
    settings = ctx.require_settings()
    manager = VMManager.from_config(ctx.config.vm)
    found = await manager.detect(ctx.sink)

    # needs_reprovision is left as stored.
    settings.vm = settings.vm.model_copy(update=found)
    ctx.sink.append(f"Found VM {found['name']} ({found['id']}): {found['state']}.", SEVERITY_SUCCESS)

    try:
        await ctx.save_settings()
    except (SettingsStoreError, OSError) as e:
        ctx.sink.append(f"Could not save VM status: {e}", SEVERITY_WARNING)
    return settings


async def check_provision_status(ctx: BootContext) -> bool:
    """Show the reprovision notice once if the VM needs it. Never fails."""
    settings = ctx.require_settings()
    ctx.sink.append("Checking provision status.")

    needs_reprovision = settings.vm.needs_reprovision
    if needs_reprovision and not ctx.reprovision_notice_shown:
        ctx.reprovision_notice_shown = True
        if ctx.on_reprovision_notice:
            ctx.on_reprovision_notice()
    return needs_reprovision
