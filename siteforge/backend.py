"""
Backend Adapter Module

Responsibility:
- Define the boundary the core calls to create each resource
- Apply a plan strictly in plan order, once per intent
- Surface backend failures as BackendError, without retry or rollback
- Provide an in-memory dry-run backend that resolves References

The real backend is a cloud control plane and lives outside this package.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Dict, List

from siteforge.errors import BackendError
from siteforge.models import ProvisioningPlan, Reference, ResourceHandle, ResourceIntent, ResourceKind

logger = logging.getLogger(__name__)


class BackendAdapter(ABC):
    """
    Interface to a provisioning backend.

    apply() receives the intent plus the handles of every resource applied
    before it, keyed by resource id.
    """

    @abstractmethod
    def apply(self, intent: ResourceIntent, resolved: Dict[str, ResourceHandle]) -> ResourceHandle:
        """Create or update the resource described by intent."""


def apply_plan(plan: ProvisioningPlan, backend: BackendAdapter) -> List[ResourceHandle]:
    """
    Apply every intent of a plan through a backend, in plan order.

    Stops at the first failure. A BackendError raised by the adapter is
    propagated unchanged; any other exception is wrapped in one.
    """
    resolved: Dict[str, ResourceHandle] = {}
    handles = []

    for intent in plan.intents:
        logger.info("Applying %s '%s'", intent.kind.value, intent.id)
        try:
            handle = backend.apply(intent, dict(resolved))
        except BackendError:
            logger.error("Backend failed on '%s'", intent.id)
            raise
        except Exception as e:
            logger.error("Backend failed on '%s': %s", intent.id, e)
            raise BackendError(intent.id, str(e)) from e

        resolved[intent.id] = handle
        handles.append(handle)

    return handles


class DryRunBackend(BackendAdapter):
    """
    In-memory backend that fabricates deterministic identifiers.

    Useful to check that every Reference in a plan can be resolved from
    resources applied earlier in the plan.
    """

    def __init__(self, account: str = "000000000000", region: str = "us-east-1"):
        self.account = account
        self.region = region
        self.applied: List[str] = []
        self.resolved_properties: Dict[str, dict] = {}

    def apply(self, intent: ResourceIntent, resolved: Dict[str, ResourceHandle]) -> ResourceHandle:
        for ref in intent.depends_on:
            if ref.target_id not in resolved:
                raise BackendError(intent.id, f"dependency '{ref.target_id}' has not been applied")

        properties = self._resolve(intent.id, intent.properties, resolved)
        physical_id, attributes = self._fabricate(intent, properties)

        self.applied.append(intent.id)
        self.resolved_properties[intent.id] = properties
        return ResourceHandle(id=intent.id, kind=intent.kind, physical_id=physical_id, attributes=attributes)

    def _resolve(self, intent_id: str, value, resolved: Dict[str, ResourceHandle]):
        """Replace References with attribute values of applied resources."""
        if isinstance(value, Reference):
            handle = resolved.get(value.target_id)
            if handle is None:
                raise BackendError(intent_id, f"unresolved reference {value.render()}")
            attribute = handle.get(value.attribute)
            if attribute is None:
                raise BackendError(
                    intent_id, f"'{value.target_id}' has no attribute '{value.attribute}'"
                )
            return attribute
        elif isinstance(value, Mapping):
            return {key: self._resolve(intent_id, item, resolved) for key, item in value.items()}
        elif isinstance(value, (list, tuple)):
            return [self._resolve(intent_id, item, resolved) for item in value]
        else:
            return value

    def _fabricate(self, intent: ResourceIntent, properties: dict):
        """Return (physical_id, attributes) for an applied intent."""
        token = _token(intent.id)
        kind = intent.kind

        if kind == ResourceKind.BUCKET:
            name = properties.get("bucket_name", intent.id)
            region = properties.get("region") or self.region
            return name, {
                "arn": f"arn:aws:s3:::{name}",
                "bucket_name": name,
                "regional_domain_name": f"{name}.s3.{region}.amazonaws.com",
            }
        elif kind == ResourceKind.HOSTED_ZONE:
            zone_id = "Z" + token[:13]
            return zone_id, {
                "zone_id": zone_id,
                "name_servers": [f"ns-{i}.awsdns-{token[:2].lower()}.net" for i in range(1, 5)],
            }
        elif kind == ResourceKind.CERTIFICATE:
            arn = f"arn:aws:acm:{self.region}:{self.account}:certificate/{token.lower()}"
            return arn, {"certificate_arn": arn}
        elif kind == ResourceKind.ORIGIN_IDENTITY:
            identity_id = "E" + token[:13]
            return identity_id, {
                "identity_id": identity_id,
                "canonical_user_id": hashlib.sha256(intent.id.encode("utf-8")).hexdigest(),
            }
        elif kind == ResourceKind.BUCKET_POLICY:
            return f"policy-{token[:8].lower()}", {"policy_id": f"policy-{token[:8].lower()}"}
        elif kind == ResourceKind.DISTRIBUTION:
            distribution_id = "E" + token[:13]
            return distribution_id, {
                "distribution_id": distribution_id,
                "domain_name": f"d{token[:13].lower()}.cloudfront.net",
            }
        elif kind == ResourceKind.A_RECORD:
            fqdn = properties.get("record_name", intent.id).rstrip(".") + "."
            return fqdn, {"fqdn": fqdn}
        elif kind == ResourceKind.DEPLOYMENT:
            return f"deployment-{token[:8].lower()}", {"deployment_id": f"deployment-{token[:8].lower()}"}

        raise BackendError(intent.id, f"unsupported resource kind '{kind}'")


def _token(seed: str) -> str:
    return hashlib.sha256(seed.encode("utf-8")).hexdigest().upper()
