"""
Configuration Loading Module

Responsibility:
- Read the deployment settings from a YAML file
- Apply SITEFORGE_* environment overrides
- Produce a Configuration (validation happens separately)
"""

import logging
import os
from typing import Optional

import yaml

from siteforge.errors import ConfigError
from siteforge.models import Configuration, ConfigViolation

logger = logging.getLogger(__name__)

# Configuration field -> accepted settings keys
FIELD_ALIASES = {
    "stage": ["stage"],
    "content_path": ["content_path", "contentPath", "path"],
    "domain_name": ["domain_name", "domainName"],
    "subdomain_name": ["subdomain_name", "subdomainName"],
    "account": ["account"],
    "region": ["region"],
}

ENV_PREFIX = "SITEFORGE_"


def load_configuration(path: str, environ=None) -> Configuration:
    """
    Load a Configuration from a YAML settings file.

    Environment variables (SITEFORGE_STAGE, SITEFORGE_REGION, ...) override
    values from the file. A relative content path is resolved against the
    directory holding the settings file.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            [ConfigViolation(field="settings", reason=f"Cannot read settings file: {e}", value=path)]
        ) from e

    if not isinstance(data, dict):
        raise ConfigError(
            [ConfigViolation(field="settings", reason="Settings file must contain a mapping", value=path)]
        )

    base_dir = os.path.dirname(os.path.abspath(path))
    return configuration_from_mapping(data, base_dir=base_dir, environ=environ)


def configuration_from_mapping(data: dict, base_dir: Optional[str] = None, environ=None) -> Configuration:
    """
    Build a Configuration from a plain mapping plus environment overrides.

    A relative content path from the mapping is joined to base_dir; one
    from SITEFORGE_CONTENT_PATH is resolved against the current directory.
    """
    if environ is None:
        environ = os.environ

    values = {}
    from_environment = set()
    for field_name, aliases in FIELD_ALIASES.items():
        value = ""
        for key in aliases:
            if data.get(key) is not None:
                value = str(data[key])
                break

        env_value = environ.get(ENV_PREFIX + field_name.upper())
        if env_value:
            logger.debug("Overriding %s from environment", field_name)
            value = env_value
            from_environment.add(field_name)

        values[field_name] = value.strip()

    content_path = values["content_path"]
    if content_path and not os.path.isabs(content_path):
        if "content_path" in from_environment:
            values["content_path"] = os.path.abspath(content_path)
        elif base_dir:
            values["content_path"] = os.path.normpath(os.path.join(base_dir, content_path))

    return Configuration(**values)
