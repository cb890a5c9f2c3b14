"""
Configuration management for Lunchbox.

This module provides centralized configuration with validation using Pydantic.
All configuration values are loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VMConfig(BaseSettings):
    """Managed virtual machine detection configuration."""

    model_config = SettingsConfigDict(env_prefix='LUNCHBOX_VM_', case_sensitive=False)

    name: str = Field(default='drupalvm', description='Machine name of the managed VM')
    status_command: list[str] = Field(
        default=['vagrant', 'global-status'],
        description='Command listing all known VMs, one per line'
    )
    config_file_name: str = Field(default='config.yml', description='VM config file inside the VM home')

    @field_validator('name', 'config_file_name')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate value is not blank."""
        if not v.strip():
            raise ValueError('Value must not be empty')
        return v.strip()

    @field_validator('status_command')
    @classmethod
    def validate_command(cls, v: list[str]) -> list[str]:
        """Validate the status command has a program to run."""
        if not v or not v[0].strip():
            raise ValueError('VM status command must name a program')
        return v


class ProvisioningConfig(BaseSettings):
    """
    Ansible provisioning checks (optional).

    Role checks only run when the provisioner is installed on the host.
    """
    model_config = SettingsConfigDict(env_prefix='LUNCHBOX_ANSIBLE_', case_sensitive=False)

    version_command: str = Field(default='ansible --version', description='Provisioner presence check')
    role_list_command: str = Field(default='ansible-galaxy list', description='Lists installed roles')
    roles_manifest_url: str = Field(
        default='https://raw.githubusercontent.com/geerlingguy/drupal-vm/master/provisioning/requirements.yml',
        description='Remote list of required roles'
    )
    quickstart_url: str = Field(
        default='https://github.com/geerlingguy/drupal-vm',
        description='Where role installation is documented'
    )
    http_timeout: float = Field(default=30.0, description='Manifest request timeout in seconds')

    @field_validator('version_command', 'role_list_command')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate command is not blank."""
        if not v.strip():
            raise ValueError('Command must not be empty')
        return v

    @field_validator('roles_manifest_url')
    @classmethod
    def validate_https(cls, v: str) -> str:
        """Validate the manifest is fetched over a secure transport."""
        if not v.startswith('https://'):
            raise ValueError('Roles manifest must be served over https')
        return v

    @field_validator('http_timeout')
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError('Timeout must be positive')
        return v


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix='LUNCHBOX_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    distribution_name: str = Field(
        default='lunchbox',
        description='Installed distribution whose dependencies are verified at boot'
    )
    plugins_dir_name: str = Field(default='plugins', description='Plugin directory inside user data')
    user_data_dir: Optional[Path] = Field(
        default=None,
        description='Override for the user data directory'
    )

    # Sub-configurations
    vm: VMConfig = Field(default_factory=VMConfig)
    provisioning: ProvisioningConfig = Field(default_factory=ProvisioningConfig)

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration from environment."""
        return cls(
            vm=VMConfig(),
            provisioning=ProvisioningConfig()
        )


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config


def reload_config() -> AppConfig:
    """Reload configuration from environment."""
    global _config
    _config = AppConfig.load()
    return _config
