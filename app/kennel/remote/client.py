"""Device-management API clients.

Two implementations share the ManagementClient protocol:

- HttpManagementClient talks JSON to the management server.
- FileManagementClient reads a catalog snapshot TOML, which is what a
  distribution point carries for machines that cannot reach the server.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Protocol

import httpx

from kennel.core.catalog import Catalog
from kennel.core.config import KennelConfig
from kennel.core.errors import LookupNotFound, TransientResourceFailure

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ManagementClient(Protocol):
    """What kennel needs from the management platform."""

    def fetch_catalog(self) -> Catalog:
        """Return every published package edition."""
        ...

    def fetch_group_membership(self, machine: str) -> list[str]:
        """Return the groups ``machine`` currently belongs to."""
        ...

    def run_policy(self, ref: str) -> bool:
        """Trigger policy ``ref``; True if it ran successfully."""
        ...

    def close(self) -> None:
        """Release the session."""
        ...


class HttpManagementClient:
    """Client for the management server's REST API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> HttpManagementClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def fetch_catalog(self) -> Catalog:
        data = self._get("/packages")
        records = data.get("packages", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise TransientResourceFailure("Catalog response is not a list of packages")
        catalog = Catalog.from_records(records)
        logger.debug("Fetched %d catalog editions", len(catalog))
        return catalog

    def fetch_group_membership(self, machine: str) -> list[str]:
        data = self._get(f"/computers/{machine}/groups", missing=f"Computer {machine}")
        groups = data.get("groups", []) if isinstance(data, dict) else data
        if not isinstance(groups, list):
            raise TransientResourceFailure("Group response is not a list")
        return [str(g) for g in groups]

    def run_policy(self, ref: str) -> bool:
        try:
            response = self.client.post(f"/policies/{ref}/run")
        except httpx.HTTPError as e:
            logger.warning("Policy %s could not be triggered: %s", ref, e)
            return False
        if response.is_success:
            return True
        logger.warning("Policy %s returned HTTP %d", ref, response.status_code)
        return False

    def _get(self, path: str, missing: str | None = None) -> Any:
        try:
            response = self.client.get(path)
        except httpx.HTTPError as e:
            raise TransientResourceFailure(f"Management API unavailable: {e}") from e

        if response.status_code == 404 and missing is not None:
            raise LookupNotFound(f"{missing} not found on management server")
        if response.status_code in (401, 403):
            raise TransientResourceFailure("Management API rejected our credentials")
        try:
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TransientResourceFailure(f"Management API error: {e}") from e
        except ValueError as e:
            raise TransientResourceFailure(f"Management API sent invalid JSON: {e}") from e


class FileManagementClient:
    """Reads catalog and group data from a TOML snapshot.

    Snapshot layout::

        [[packages]]
        basename = "app"
        edition = "2.1"
        status = "live"

        [computers.lab-01]
        groups = ["labs"]
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._data: dict[str, Any] | None = None

    def fetch_catalog(self) -> Catalog:
        records = self._load().get("packages", [])
        return Catalog.from_records(records)

    def fetch_group_membership(self, machine: str) -> list[str]:
        computers = self._load().get("computers", {})
        if machine not in computers:
            raise LookupNotFound(f"Computer {machine} not found in {self._path}")
        return [str(g) for g in computers[machine].get("groups", [])]

    def run_policy(self, ref: str) -> bool:
        logger.info("Policy %s cannot run without a management server", ref)
        return False

    def close(self) -> None:
        self._data = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            try:
                with open(self._path, "rb") as f:
                    self._data = tomllib.load(f)
            except FileNotFoundError as e:
                raise TransientResourceFailure(f"Catalog snapshot not found: {self._path}") from e
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise TransientResourceFailure(f"Cannot read catalog snapshot: {e}") from e
        return self._data


def create_client(config: KennelConfig, distribution_point: Path) -> ManagementClient:
    """Pick the client implementation the configuration asks for."""
    if config.server_url:
        return HttpManagementClient(
            config.server_url,
            token=config.api_token,
            timeout=config.api_timeout_seconds,
        )
    return FileManagementClient(distribution_point / config.catalog_file)
