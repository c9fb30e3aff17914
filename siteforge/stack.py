"""
Static Site Stack Module

Responsibility:
- Declare every resource of the static-site deployment from a Configuration
- Wire cross-resource values as typed References
- Make dependencies explicit through depends_on

Behaviour that varies between deployments (certificate validation,
expiry metrics) is passed in as plain functions on StackHooks.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from siteforge.contracts import reference_to
from siteforge.graph import ResourceGraph
from siteforge.models import Configuration, Reference, ResourceKind

INDEX_DOCUMENT = "index.html"
ERROR_DOCUMENT = "index.html"
CACHE_MAX_AGE_SECONDS = 24 * 60 * 60
SECURITY_POLICY = "TLSv1.2_2021"


def dns_validation(zone: Reference) -> dict:
    """Validate the certificate with DNS records in the hosted zone."""
    return {"method": "DNS", "hosted_zone": zone}


def days_to_expiry_metric(certificate_id: str) -> Optional[dict]:
    """Describe the certificate expiry metric attached to the distribution."""
    return {
        "namespace": "TLS viewer certificate validity",
        "metric_name": "TLS Viewer Certificate expired",
        "dimension": certificate_id,
        "statistic": "Minimum",
    }


@dataclass
class StackHooks:
    """Pluggable behaviour for the static-site stack."""
    certificate_validation: Callable[[Reference], dict] = field(default=dns_validation)
    certificate_metrics: Callable[[str], Optional[dict]] = field(default=days_to_expiry_metric)


def declare_static_site(config: Configuration, hooks: Optional[StackHooks] = None) -> ResourceGraph:
    """
    Declare the static-site resources for a validated configuration.

    Dependency chain: bucket and origin identity -> bucket policy ->
    distribution -> alias record and content deployment. The hosted zone
    feeds the certificate and the record.
    """
    hooks = hooks or StackHooks()
    graph = ResourceGraph()
    stage = config.stage
    domain = config.domain_name.rstrip(".")
    subdomain = config.subdomain_name.rstrip(".")

    bucket = graph.declare(ResourceKind.BUCKET, f"site-bucket-{stage}", {
        "bucket_name": subdomain,
        "website_index_document": INDEX_DOCUMENT,
        "website_error_document": ERROR_DOCUMENT,
        "removal_policy": "destroy",
        "public_read_access": False,
        "block_public_access": "BLOCK_ALL",
        "region": config.region,
        "account": config.account,
    })

    zone = graph.declare(ResourceKind.HOSTED_ZONE, "hosted-zone", {
        "zone_name": domain,
    })

    certificate = graph.declare(ResourceKind.CERTIFICATE, "certificate", {
        "domain_name": domain,
        "subject_alternative_names": [f"*.{domain}"],
        "validation": hooks.certificate_validation(reference_to(zone)),
    }, depends_on=[zone.id])

    identity = graph.declare(ResourceKind.ORIGIN_IDENTITY, "origin-identity", {
        "comment": f"Cloudfront OAI for {domain}",
    })

    policy = graph.declare(ResourceKind.BUCKET_POLICY, "bucket-policy", {
        "bucket": reference_to(bucket),
        "statement": {
            "sid": "s3BucketPublicRead",
            "effect": "Allow",
            "actions": ["s3:GetObject"],
            "principal": {"canonical_user": reference_to(identity)},
            "resource": reference_to(bucket),
            "resource_suffix": "/*",
        },
    }, depends_on=[bucket.id, identity.id])

    viewer_certificate = {
        "certificate_arn": reference_to(certificate),
        "ssl_method": "sni-only",
        "security_policy": SECURITY_POLICY,
        "aliases": [subdomain],
    }
    metrics = hooks.certificate_metrics(certificate.id)
    if metrics:
        viewer_certificate["expiry_metric"] = metrics

    distribution = graph.declare(ResourceKind.DISTRIBUTION, "distribution", {
        "origin": {
            "bucket": reference_to(bucket),
            "origin_access_identity": reference_to(identity),
        },
        "viewer_certificate": viewer_certificate,
        "default_behavior": {
            "compress": True,
            "allowed_methods": ["GET", "HEAD", "OPTIONS"],
            "viewer_protocol_policy": "redirect-to-https",
        },
    }, depends_on=[bucket.id, identity.id, policy.id, certificate.id])

    graph.declare(ResourceKind.DEPLOYMENT, f"site-deployment-{stage}", {
        "destination_bucket": reference_to(bucket),
        "sources": [config.content_path],
        "cache_control": [f"max-age={CACHE_MAX_AGE_SECONDS}"],
        "distribution": reference_to(distribution),
    }, depends_on=[bucket.id, distribution.id])

    graph.declare(ResourceKind.A_RECORD, "alias-record", {
        "zone": reference_to(zone),
        "record_name": subdomain,
        "target": reference_to(distribution),
    }, depends_on=[zone.id, distribution.id])

    return graph
