"""Shared fixtures for SiteForge tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from siteforge.models import Configuration


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """A directory holding a minimal static site."""
    site = tmp_path / "web-app"
    site.mkdir()
    (site / "index.html").write_text("<h1>hello</h1>")
    return site


@pytest.fixture
def valid_config(content_dir: Path) -> Configuration:
    return Configuration(
        stage="dev",
        content_path=str(content_dir),
        domain_name="example.com",
        subdomain_name="www.example.com",
        account="123456789012",
        region="us-east-1",
    )
