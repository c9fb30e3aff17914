"""
Resource Contracts Module

Responsibility:
- Define, per resource kind, the properties that must be present
- Name the output attribute other resources reference
- List the properties that hold References and the kind they must point at

Contracts define WHAT must exist, not what the values are.
check_contracts() reports problems; it never raises.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import List

from siteforge.models import Reference, ResourceKind


RESOURCE_CONTRACTS = {
    ResourceKind.BUCKET: {
        "required_properties": ["bucket_name"],
        "output": "arn",
        "attributes": ["arn", "bucket_name", "regional_domain_name"],
        "reference_fields": {},
    },
    ResourceKind.HOSTED_ZONE: {
        "required_properties": ["zone_name"],
        "output": "zone_id",
        "attributes": ["zone_id", "name_servers"],
        "reference_fields": {},
    },
    ResourceKind.CERTIFICATE: {
        "required_properties": ["domain_name", "validation"],
        "output": "certificate_arn",
        "attributes": ["certificate_arn"],
        "reference_fields": {},
    },
    ResourceKind.ORIGIN_IDENTITY: {
        "required_properties": ["comment"],
        "output": "canonical_user_id",
        "attributes": ["canonical_user_id", "identity_id"],
        "reference_fields": {},
    },
    ResourceKind.BUCKET_POLICY: {
        "required_properties": ["bucket", "statement"],
        "output": "policy_id",
        "attributes": ["policy_id"],
        "reference_fields": {
            "bucket": ResourceKind.BUCKET,
        },
    },
    ResourceKind.DISTRIBUTION: {
        "required_properties": ["origin", "viewer_certificate", "default_behavior"],
        "output": "domain_name",
        "attributes": ["domain_name", "distribution_id"],
        "reference_fields": {
            "origin.bucket": ResourceKind.BUCKET,
            "origin.origin_access_identity": ResourceKind.ORIGIN_IDENTITY,
            "viewer_certificate.certificate_arn": ResourceKind.CERTIFICATE,
        },
    },
    ResourceKind.A_RECORD: {
        "required_properties": ["zone", "record_name", "target"],
        "output": "fqdn",
        "attributes": ["fqdn"],
        "reference_fields": {
            "zone": ResourceKind.HOSTED_ZONE,
            "target": ResourceKind.DISTRIBUTION,
        },
    },
    ResourceKind.DEPLOYMENT: {
        "required_properties": ["destination_bucket", "sources"],
        "output": "deployment_id",
        "attributes": ["deployment_id"],
        "reference_fields": {
            "destination_bucket": ResourceKind.BUCKET,
            "distribution": ResourceKind.DISTRIBUTION,
        },
    },
}


@dataclass
class ContractViolation:
    """A resource that does not satisfy its kind's contract."""
    node_id: str
    path: str  # Dot-path like "origin.bucket"
    reason: str


def get_resource_contract(kind: ResourceKind):
    """Retrieve the contract for a resource kind."""
    return RESOURCE_CONTRACTS.get(ResourceKind(kind))


def output_attribute(kind: ResourceKind) -> str:
    """Attribute that dependents reference by default."""
    return get_resource_contract(kind)["output"]


def reference_to(node) -> Reference:
    """Build a Reference to a node's default output attribute."""
    return Reference(node.id, node.kind, output_attribute(node.kind))


def check_contracts(graph) -> List:
    """
    Check every node of a graph against its kind's contract.

    Returns a list of ContractViolation objects; empty when all nodes comply.
    """
    violations = []

    for node in graph:
        contract = get_resource_contract(node.kind)

        for prop in contract["required_properties"]:
            if _get_nested_value(node.properties, prop) is None:
                violations.append(ContractViolation(
                    node_id=node.id,
                    path=prop,
                    reason=f"Required property '{prop}' is missing"
                ))

        for path, expected_kind in contract["reference_fields"].items():
            value = _get_nested_value(node.properties, path)
            if value is None:
                continue

            if not isinstance(value, Reference):
                violations.append(ContractViolation(
                    node_id=node.id,
                    path=path,
                    reason=f"Property '{path}' must reference a {expected_kind.value}"
                ))
                continue

            if value.kind != expected_kind:
                violations.append(ContractViolation(
                    node_id=node.id,
                    path=path,
                    reason=f"Property '{path}' references a {value.kind.value}, "
                           f"expected a {expected_kind.value}"
                ))

            if value.target_id not in node.depends_on:
                violations.append(ContractViolation(
                    node_id=node.id,
                    path=path,
                    reason=f"Referenced resource '{value.target_id}' is not declared in depends_on"
                ))

    return violations


def _get_nested_value(data: Mapping, path: str):
    """Helper to get nested dictionary value using dot notation."""
    value = data

    for key in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(key)
            if value is None:
                return None
        else:
            return None

    return value
