"""
Configuration Validation Module

Responsibility:
- Check stage, hostnames, content path, account and region
- Collect EVERY violation, not just the first
- Raise ConfigError carrying the full list when anything is wrong

This is PURE validation logic: no side effects beyond reading the
filesystem to check the content directory.
"""

import os
import re
from typing import List

from siteforge.errors import ConfigError
from siteforge.models import Configuration, ConfigViolation

_LABEL_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")
_ACCOUNT_RE = re.compile(r"^[A-Za-z0-9_-]+$")
# us-east-1, eu-central-2, us-gov-west-1, ap-southeast-3 ...
_REGION_RE = re.compile(r"^[a-z]{2}(-gov)?-[a-z]+-\d$")

MAX_HOSTNAME_LENGTH = 253


def validate(config: Configuration) -> Configuration:
    """
    Validate a configuration.

    Returns the configuration unchanged when valid, otherwise raises
    ConfigError listing all violations.
    """
    violations = collect_violations(config)
    if violations:
        raise ConfigError(violations)
    return config


def collect_violations(config: Configuration) -> List[ConfigViolation]:
    """Return every violation found in the configuration."""
    violations = []

    if not str(config.stage or "").strip():
        violations.append(ConfigViolation(
            field="stage",
            reason="Stage must not be empty",
            value=config.stage
        ))

    domain_ok = _check_hostname("domain_name", config.domain_name, violations)
    subdomain_ok = _check_hostname("subdomain_name", config.subdomain_name, violations)

    if domain_ok and subdomain_ok:
        domain = _normalize_hostname(config.domain_name)
        subdomain = _normalize_hostname(config.subdomain_name)
        if not subdomain.endswith("." + domain):
            violations.append(ConfigViolation(
                field="subdomain_name",
                reason=f"'{config.subdomain_name}' is not a subdomain of '{config.domain_name}'",
                value=config.subdomain_name
            ))

    violations.extend(_check_content_path(config.content_path))

    if not _ACCOUNT_RE.match(str(config.account or "")):
        violations.append(ConfigViolation(
            field="account",
            reason="Account must be a non-empty identifier (letters, digits, '-' or '_')",
            value=config.account
        ))

    if not _REGION_RE.match(str(config.region or "")):
        violations.append(ConfigViolation(
            field="region",
            reason=f"'{config.region}' is not a valid region code (e.g. 'us-east-1')",
            value=config.region
        ))

    return violations


def is_valid_hostname(hostname: str) -> bool:
    """Check that a string is a syntactically valid, multi-label hostname."""
    if not isinstance(hostname, str) or not hostname:
        return False

    name = hostname[:-1] if hostname.endswith(".") else hostname
    if not name or len(name) > MAX_HOSTNAME_LENGTH:
        return False

    labels = name.split(".")
    if len(labels) < 2:
        return False

    return all(_LABEL_RE.match(label) for label in labels)


def _check_hostname(field_name: str, value, violations: list) -> bool:
    if is_valid_hostname(value):
        return True

    violations.append(ConfigViolation(
        field=field_name,
        reason=f"'{value}' is not a valid hostname",
        value=value
    ))
    return False


def _normalize_hostname(hostname: str) -> str:
    return hostname.rstrip(".").lower()


def _check_content_path(content_path) -> List[ConfigViolation]:
    if not content_path:
        return [ConfigViolation(
            field="content_path",
            reason="Content path must not be empty",
            value=content_path
        )]

    if not os.path.isdir(content_path):
        return [ConfigViolation(
            field="content_path",
            reason=f"'{content_path}' is not an existing directory",
            value=content_path
        )]

    if not os.access(content_path, os.R_OK | os.X_OK):
        return [ConfigViolation(
            field="content_path",
            reason=f"'{content_path}' is not readable",
            value=content_path
        )]

    return []
