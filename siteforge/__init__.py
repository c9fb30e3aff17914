"""
SiteForge: resource-graph builder for a static site behind a CDN.

Declares the resources of a static-site deployment, resolves their
dependencies into a deterministic order, and emits a provisioning plan
for an external backend.
"""

__version__ = "0.1.0"
