"""Settings for the records portal CLI and workflow service.

Settings are read from a YAML file and can be overridden per process with
``RECORDSPORTAL_*`` environment variables, so a deployment can point the
portal at its database without editing the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel

DEFAULT_CONFIG_FILE = "config.yaml"

# Checked in order after the file is read; the first one set wins.
ENV_OVERRIDES = {
    "database_url": ("RECORDSPORTAL_DATABASE_URL", "DATABASE_URL"),
    "log_level": ("RECORDSPORTAL_LOG_LEVEL",),
    "default_flow": ("RECORDSPORTAL_FLOW",),
}


class RecordsPortalConfig(BaseModel):
    """Where workflow states are stored and how the CLI presents them.

    ``database_url`` selects the state repository (``sqlite://<path>``, or
    in-memory when unset). ``default_flow`` is the page flow whose routes
    ``request show`` prints when ``--flow`` is not given.
    """

    database_url: Optional[str] = None
    log_level: str = "INFO"
    default_flow: Literal["v2", "staff"] = "v2"


def _read_settings(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open() as handle:
        return yaml.safe_load(handle) or {}


def _env_value(names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def load_config(path: Optional[str] = None) -> RecordsPortalConfig:
    """Build the portal settings.

    The file is ``path``, else ``$RECORDSPORTAL_CONFIG``, else
    ``config.yaml`` in the working directory. A missing file leaves the
    defaults in place.
    """
    source = Path(path or os.getenv("RECORDSPORTAL_CONFIG", DEFAULT_CONFIG_FILE))
    settings = _read_settings(source)
    for field, names in ENV_OVERRIDES.items():
        value = _env_value(names)
        if value:
            settings[field] = value
    return RecordsPortalConfig(**settings)
