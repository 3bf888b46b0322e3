"""Package registry lookups."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import requests

from codelaunch.packages.config import CodelaunchError

ABBREVIATED_METADATA = "application/vnd.npm.install-v1+json"


class RegistryError(CodelaunchError):
    pass


class RegistryClient:
    """Read-only client for an npm-compatible registry."""

    def __init__(self, base_url: str = "https://registry.npmjs.org", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def package_url(self, name: str) -> str:
        return f"{self.base_url}/{quote(name, safe='@')}"

    def published_versions(self, name: str) -> Optional[set[str]]:
        """Versions on the registry, or None if the package has never been published."""
        try:
            resp = requests.get(self.package_url(name),
                                headers={"Accept": ABBREVIATED_METADATA},
                                timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryError(f"Registry lookup for {name} failed: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise RegistryError(f"Registry lookup for {name} returned HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            raise RegistryError(f"Registry lookup for {name} returned a non-JSON body: {e}") from e
        if not isinstance(body, dict):
            raise RegistryError(f"Registry lookup for {name} returned unexpected metadata")
        versions = body.get("versions") or {}
        if not isinstance(versions, dict):
            raise RegistryError(f"Registry lookup for {name} returned unexpected metadata")
        return set(versions.keys())

    def is_published(self, name: str, version: str) -> bool:
        versions = self.published_versions(name)
        return versions is not None and version in versions
