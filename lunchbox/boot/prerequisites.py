"""
Prerequisite checks run at boot.

Three kinds of checks are queued into one chain, in this order:

1. the Python packages this app declares are installed at matching versions;
2. each required external tool runs and reports a new enough version;
3. if Ansible is installed, every role DrupalVM needs has been installed
   with ``ansible-galaxy`` (no Ansible on the host is fine).

The first failing check stops the rest.
"""

import asyncio
import importlib.metadata
import logging
import re
import sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Union

import requests
from packaging.requirements import InvalidRequirement, Requirement as PackageRequirement

from errors import BootError, BootErrorCode

from ..core.context import BootContext
from ..core.status import SEVERITY_SUCCESS
from ..core.task_chain import Link, TaskChain
from ..utils.command_runner import run_command
from ..utils.versions import VersionOrder, compare_versions, extract_version

logger = logging.getLogger(__name__)

HelpText = Union[str, Sequence[str], Dict[str, Union[str, Sequence[str]]], None]


@dataclass(frozen=True)
class Requirement:
    """An external tool the app cannot work without."""
    name: str
    check_command: str
    version_regex: Optional[Pattern[str]] = None
    min_version: Optional[str] = None
    # A string or list applies to every platform; a dict is keyed by sys.platform.
    platform_help: HelpText = None

    def help_lines(self, platform_name: Optional[str] = None) -> List[str]:
        """Installation help for ``platform_name`` (defaults to this host)."""
        help_text = self.platform_help
        if isinstance(help_text, dict):
            help_text = help_text.get(platform_name or sys.platform)
        if help_text is None:
            return []
        if isinstance(help_text, str):
            return [help_text]
        return list(help_text)


VAGRANT_DOWNLOADS = "http://www.vagrantup.com/downloads"

SOFTWARE_REQUIREMENTS = (
    Requirement(
        name="VirtualBox",
        check_command="vboxmanage --version",
        version_regex=re.compile(r"(\d+\.\d+\.\d+)", re.IGNORECASE),
        min_version="5.0.10",
    ),
    Requirement(
        name="Vagrant",
        check_command="vagrant --version",
        version_regex=re.compile(r"Vagrant (\d+\.\d+\.\d+)", re.IGNORECASE),
        min_version="1.7.4",
        platform_help={
            "darwin": [
                f"Vagrant can be installed via a binary: {VAGRANT_DOWNLOADS}, or",
                "using Homebrew: http://sourabhbajaj.com/mac-setup/Vagrant/README.html",
            ],
            "linux": [
                f"Vagrant can be installed via a binary: {VAGRANT_DOWNLOADS}, or",
                "via command line: http://www.olindata.com/blog/2014/07/installing-vagrant-and-virtual-box-ubuntu-1404-lts",
            ],
            "win32": f"Vagrant can be installed via a binary: {VAGRANT_DOWNLOADS}",
        },
    ),
    Requirement(
        name="Vagrant VBGuest Plugin",
        check_command="vagrant plugin list",
        version_regex=re.compile(r"vagrant-vbguest \((\d+\.\d+\.\d+)\)", re.IGNORECASE),
        min_version="0.11.0",
        platform_help="Vagrant VBGuest Plugin can be installed by running 'vagrant plugin install vagrant-vbguest'.",
    ),
    Requirement(
        name="Vagrant HostsUpdater Plugin",
        check_command="vagrant plugin list",
        version_regex=re.compile(r"vagrant-hostsupdater \((\d+\.\d+\.\d+)\)", re.IGNORECASE),
        min_version="1.0.1",
        platform_help="Vagrant HostsUpdater Plugin can be installed by running 'vagrant plugin install vagrant-hostsupdater'.",
    ),
)

ROLE_OWNERSHIP_HINT = (
    'If you encounter the "Error: cannot find role" issue, '
    "ensure that /etc/ansible/roles is owned by your user."
)


# ---------------------------------------------------------------------------
# Python package dependencies
# ---------------------------------------------------------------------------


def find_unmet_dependencies(distribution_name: str) -> List[str]:
    """
    Describe every declared requirement of ``distribution_name`` that is
    missing or installed at a non-matching version.

    Requirements gated off by environment markers (including extras) are
    ignored.

    Raises:
        importlib.metadata.PackageNotFoundError: the app itself is not installed
    """
    unmet: List[str] = []
    for raw in importlib.metadata.requires(distribution_name) or []:
        try:
            requirement = PackageRequirement(raw)
        except InvalidRequirement as e:
            logger.warning("Failed to parse requirement '%s': %s", raw, e)
            continue
        if requirement.marker and not requirement.marker.evaluate():
            continue
        try:
            installed = importlib.metadata.version(requirement.name)
        except importlib.metadata.PackageNotFoundError:
            unmet.append(f"{requirement.name} (not installed)")
            continue
        if requirement.specifier and not requirement.specifier.contains(installed, prereleases=True):
            unmet.append(f"{requirement.name} ({installed} installed, {requirement.specifier} required)")
    return unmet


async def check_package_dependencies(ctx: BootContext) -> None:
    distribution = ctx.config.distribution_name
    try:
        unmet = await asyncio.to_thread(find_unmet_dependencies, distribution)
    except importlib.metadata.PackageNotFoundError:
        unmet = [f"{distribution} (not installed)"]

    if unmet:
        raise BootError(
            BootErrorCode.DEPENDENCIES_UNMET,
            summary='Unmet Python dependencies. Please run "pip install -e ." in the project directory.',
            detail_lines=[f"\t{item}" for item in unmet],
        )
    return None


# ---------------------------------------------------------------------------
# External software
# ---------------------------------------------------------------------------


def software_check(requirement: Requirement) -> Link:
    """Build the chain link verifying one external tool."""

    async def check(ctx: BootContext) -> Requirement:
        result = await run_command(requirement.check_command)
        if not result.ok:
            raise BootError(
                BootErrorCode.SOFTWARE_NOT_FOUND,
                summary=f"Could not find {requirement.name}; ensure it is installed and available in PATH.",
                detail_lines=[
                    f"\tTried to execute: {requirement.check_command}",
                    f"\tGot error: {result.stderr.strip()}",
                ] + requirement.help_lines(),
            )

        if requirement.version_regex is not None:
            found_version = extract_version(result.stdout, requirement.version_regex)
            if found_version is None:
                raise BootError(
                    BootErrorCode.VERSION_UNDETERMINED,
                    summary=f"{requirement.name} was found, but the version could not be determined.",
                )
            if (
                requirement.min_version
                and compare_versions(found_version, requirement.min_version) is VersionOrder.LESS
            ):
                raise BootError(
                    BootErrorCode.VERSION_TOO_OLD,
                    summary=(
                        f"{requirement.name} was found, but a newer version is required. "
                        f"Please upgrade {requirement.name} to version {requirement.min_version} or higher."
                    ),
                    detail_lines=[f"\tFound version: {found_version}"],
                )
            ctx.found_versions[requirement.name] = found_version

        ctx.sink.append(f"{requirement.name} found.", SEVERITY_SUCCESS)
        return requirement

    check.__name__ = check.__qualname__ = f"check_{requirement.name.lower().replace(' ', '_')}"
    return check


# ---------------------------------------------------------------------------
# Ansible roles
# ---------------------------------------------------------------------------


def parse_required_roles(manifest: str) -> List[str]:
    """Role names from a requirements manifest: last field of 3-field lines."""
    roles: List[str] = []
    for line in manifest.splitlines():
        parts = line.split()
        if len(parts) == 3 and parts[-1] not in roles:
            roles.append(parts[-1])
    return roles


def parse_installed_roles(listing: str) -> List[str]:
    """Role names from ``ansible-galaxy list``: ``- name, version`` lines."""
    roles: List[str] = []
    for line in listing.splitlines():
        parts = line.split()
        if len(parts) == 3:
            roles.append(parts[1].replace(",", ""))
    return roles


def missing_roles(required: Iterable[str], installed: Iterable[str]) -> List[str]:
    """Required roles not installed, in required order."""
    present = set(installed)
    return [role for role in required if role not in present]


def fetch_roles_manifest(url: str, timeout: float) -> str:
    """
    Download the list of required roles.

    Raises:
        BootError: transport error or a non-200 response
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise BootError(
            BootErrorCode.MANIFEST_FETCH_FAILED,
            summary="Could not parse list of ansible roles. Received error:",
            detail_lines=[f"\t{e}"],
        ) from e

    if response.status_code != 200:
        raise BootError(
            BootErrorCode.MANIFEST_UNAVAILABLE,
            summary="Could not get list of ansible roles. Expected list to be available at:",
            detail_lines=[f"\t{url}"],
        )
    return response.text


async def check_provisioning_roles(ctx: BootContext) -> Optional[List[str]]:
    """
    Verify installed Ansible roles against the DrupalVM requirements.

    Returns None without doing anything when Ansible is not installed.
    """
    provisioning = ctx.config.provisioning
    probe = await run_command(provisioning.version_command)
    if not probe.ok:
        logger.info("Ansible not available (%s); skipping role check", probe.stderr.strip())
        return None

    ctx.sink.append("Ansible found. Checking role requirements.")
    manifest = await asyncio.to_thread(
        fetch_roles_manifest, provisioning.roles_manifest_url, provisioning.http_timeout
    )
    required = parse_required_roles(manifest)

    listing = await run_command(provisioning.role_list_command)
    if not listing.ok:
        raise BootError(
            BootErrorCode.ROLE_LIST_FAILED,
            summary=f'Could not execute "{provisioning.role_list_command}".',
            detail_lines=[f"\t{listing.stderr.strip()}"] if listing.stderr.strip() else [],
        )

    delta = missing_roles(required, parse_installed_roles(listing.stdout))
    if delta:
        raise BootError(
            BootErrorCode.ROLES_MISSING,
            detail_lines=[f"\t{role}" for role in delta] + [
                'This can be fixed by running "ansible-galaxy install" as specified in the DrupalVM quickstart:',
                f"\t {provisioning.quickstart_url}",
                ROLE_OWNERSHIP_HINT,
            ],
        )

    ctx.sink.append("Ansible roles found.", SEVERITY_SUCCESS)
    return required


# ---------------------------------------------------------------------------
# Boot operation
# ---------------------------------------------------------------------------


def build_prerequisite_chain(
    requirements: Sequence[Requirement] = SOFTWARE_REQUIREMENTS,
) -> TaskChain:
    chain = TaskChain([check_package_dependencies])
    for requirement in requirements:
        chain.add(software_check(requirement))
    chain.add(check_provisioning_roles)
    return chain


async def check_prerequisites(ctx: BootContext):
    """Run every prerequisite check; the first failure stops the rest."""
    ctx.sink.append("Checking prerequisites.")
    return await build_prerequisite_chain()(ctx)
