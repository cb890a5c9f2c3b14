"""
Detection of the managed Vagrant VM.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from config import VMConfig
from errors import BootError, BootErrorCode, raise_boot_error

from ..core.status import SEVERITY_WARNING, StatusSink
from .command_runner import spawn

logger = logging.getLogger(__name__)


class VMManager:
    """Finds the managed VM in the output of ``vagrant global-status``."""

    def __init__(
        self,
        vm_name: str = "drupalvm",
        status_command: Sequence[str] = ("vagrant", "global-status"),
        config_file_name: str = "config.yml",
    ):
        """
        Initialize VM manager.

        Args:
            vm_name: Machine name of the managed VM
            status_command: Program and arguments listing all known VMs
            config_file_name: VM config file, relative to the VM home
        """
        self.vm_name = vm_name
        self.status_command = list(status_command)
        self.config_file_name = config_file_name

    @classmethod
    def from_config(cls, config: VMConfig) -> "VMManager":
        return cls(config.name, config.status_command, config.config_file_name)

    @property
    def not_found_message(self) -> str:
        return f'Could not find "{self.vm_name}" virtualbox.'

    def find_vm(self, output: str) -> Optional[Dict[str, str]]:
        """
        Return id/name/state/home of the managed VM, or None.

        Only the machine-name column is compared: another VM whose home
        path merely contains the managed VM's name must not match.
        """
        for line in output.splitlines():
            # Sample: d21e8e6  drupalvm virtualbox poweroff /home/nate/Projects/drupal-vm
            parts = line.split()
            if len(parts) >= 5 and parts[1] == self.vm_name:
                return {
                    "id": parts[0],
                    "name": parts[1],
                    "state": parts[3],
                    "home": parts[4],
                }
        return None

    def load_vm_config(self, home: str) -> Optional[Dict[str, Any]]:
        """
        Parse ``<home>/config.yml``.

        Raises:
            OSError: the file cannot be read
            yaml.YAMLError: the file is not valid YAML
        """
        path = Path(home) / self.config_file_name
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, dict):
            logger.warning("Ignoring VM config %s: top level is not a mapping", path)
            return None
        return data

    async def detect(self, sink: StatusSink) -> Dict[str, Any]:
        """
        Run the status command, streaming its output into ``sink``.

        Returns:
            The matched VM fields plus ``config`` (None if unreadable)

        Raises:
            BootError: the command could not run or the VM is not listed
        """
        command_text = " ".join(self.status_command)
        sink.append("Checking VM status.")
        try:
            process = await spawn(*self.status_command)
        except OSError as e:
            raise BootError(
                BootErrorCode.VM_NOT_FOUND,
                summary=self.not_found_message,
                detail_lines=[f"\tTried to execute: {command_text}", f"\tGot error: {e}"],
            ) from e

        output: List[str] = []
        await sink.log_process(process, output.append)
        exit_code = await process.wait()
        logger.info("%s exited with %s", command_text, exit_code)

        found = self.find_vm("".join(output))
        if found is None:
            raise_boot_error(BootErrorCode.VM_NOT_FOUND, summary=self.not_found_message)

        try:
            found["config"] = await asyncio.to_thread(self.load_vm_config, found["home"])
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load VM config from %s: %s", found["home"], e)
            sink.append(f"Could not read VM config in {found['home']}: {e}", SEVERITY_WARNING)
            found["config"] = None
        return found
