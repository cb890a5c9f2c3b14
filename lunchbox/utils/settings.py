"""
Data model for the process-wide Lunchbox settings.

Settings are persisted as JSON by ``app_config``; the models here normalize
whatever the store returns and control what gets written back.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def default_views() -> Dict[str, Any]:
    """Per-view state seeded on first run."""
    return {"dashboard": {}, "settings": {}}


class Plugin(BaseModel):
    """A registered plugin and the directory holding its code."""

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    name_nice: str = ""
    # None when the stored record has no path; such a plugin is pruned at boot.
    path: Optional[str] = None
    # Live plugin handle; never persisted.
    instance: Any = Field(default=None, exclude=True)


class VMStatus(BaseModel):
    """Last known state of the managed VM."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    state: Optional[str] = None
    home: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    needs_reprovision: bool = False


class Settings(BaseModel):
    """
    Root settings object.

    ``plugins`` and ``views`` are always present after validation; values
    already present in the stored payload are kept as they are.
    """

    model_config = ConfigDict(extra="allow")

    plugins: List[Plugin] = Field(default_factory=list)
    views: Dict[str, Any] = Field(default_factory=default_views)
    vm: VMStatus = Field(default_factory=VMStatus)
    user_data_path: Optional[str] = None
    plugins_path: Optional[str] = None

    @field_validator("plugins", "vm", mode="before")
    @classmethod
    def _none_as_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == "plugins" else {}
        return v

    @field_validator("plugins", mode="before")
    @classmethod
    def _drop_non_mapping_plugins(cls, v):
        if not isinstance(v, list):
            return v
        kept = [entry for entry in v if isinstance(entry, (dict, Plugin))]
        if len(kept) != len(v):
            logger.warning("Dropping %d unreadable plugin record(s)", len(v) - len(kept))
        return kept

    @field_validator("views", mode="before")
    @classmethod
    def _none_as_default_views(cls, v):
        if v is None:
            return default_views()
        return v

    @classmethod
    def from_store(cls, data: Optional[Dict[str, Any]]) -> "Settings":
        """Build settings from a raw store payload (``None`` means empty)."""
        return cls.model_validate(data or {})

    def to_store(self) -> Dict[str, Any]:
        """JSON-ready payload for the settings store."""
        return self.model_dump(mode="json")
