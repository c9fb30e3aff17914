"""
Core Domain Models Module

Responsibility:
- Define the configuration handed to every entry point
- ResourceNode: one declared infrastructure object and its dependencies
- Reference: a typed, symbolic pointer to another resource's output
- ResourceIntent / ProvisioningPlan: the resolved, ordered output
- ResourceHandle: what a backend returns after applying an intent

Nodes, intents and plans are frozen once created, including nested
property data.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional


def freeze(value: Any) -> Any:
    """
    Return a read-only copy of nested property data.

    Mappings become MappingProxyType, lists and tuples become tuples, sets
    become frozensets. Anything else is returned as-is.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    elif isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    elif isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    return value


@dataclass(frozen=True)
class Configuration:
    """
    Deployment configuration for one invocation.

    Created once, never mutated. Nothing in the package supplies defaults
    for these values; they come from a settings file, the environment or
    an API request.
    """
    stage: str
    content_path: str
    domain_name: str
    subdomain_name: str
    account: str
    region: str


@dataclass
class ConfigViolation:
    """A single configuration validation failure."""
    field: str
    reason: str  # Human-readable explanation
    value: Any = None


class ResourceKind(str, Enum):
    """Kinds of infrastructure object a graph can hold."""

    BUCKET = "Bucket"
    HOSTED_ZONE = "HostedZone"
    CERTIFICATE = "Certificate"
    ORIGIN_IDENTITY = "OriginIdentity"
    BUCKET_POLICY = "BucketPolicy"
    DISTRIBUTION = "Distribution"
    A_RECORD = "ARecord"
    DEPLOYMENT = "Deployment"


@dataclass(frozen=True)
class Reference:
    """
    Symbolic reference to an output attribute of another resource.

    Resolved to a live identifier by the backend, never by the core.
    """
    target_id: str
    kind: ResourceKind
    attribute: str

    def render(self) -> str:
        return f"${{{self.target_id}.{self.attribute}}}"

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class ResourceNode:
    """
    A declared infrastructure object.

    depends_on holds resource ids, in declaration order, without duplicates.
    """
    id: str
    kind: ResourceKind
    properties: Mapping = field(default_factory=dict)
    depends_on: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "properties", freeze(self.properties))
        object.__setattr__(self, "depends_on", tuple(self.depends_on))


@dataclass(frozen=True)
class ResourceIntent:
    """Snapshot of a ResourceNode with dependencies turned into References."""
    id: str
    kind: ResourceKind
    properties: Mapping = field(default_factory=dict)
    depends_on: tuple = ()  # tuple[Reference, ...]

    def __post_init__(self):
        object.__setattr__(self, "properties", freeze(self.properties))
        object.__setattr__(self, "depends_on", tuple(self.depends_on))


@dataclass(frozen=True)
class ProvisioningPlan:
    """Ordered intents ready to be handed to a backend."""
    stage: str
    intents: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "intents", tuple(self.intents))

    def __len__(self) -> int:
        return len(self.intents)

    def __iter__(self):
        return iter(self.intents)

    def ids(self) -> list:
        return [intent.id for intent in self.intents]


@dataclass(frozen=True)
class ResourceHandle:
    """Result of applying one intent through a backend."""
    id: str
    kind: ResourceKind
    physical_id: str
    attributes: dict = field(default_factory=dict)

    def get(self, attribute: str) -> Optional[Any]:
        return self.attributes.get(attribute)
