"""Load API descriptions from a service URL, an explicit URL, a local file, or stdin.

This module handles all I/O for obtaining the raw OpenAPI document that the
rest of the package compiles into a grammar. Both JSON and YAML are accepted
with automatic format detection.

The public functions are:

* :func:`fetch_spec` -- Fetch ``{base_url}{spec_path}`` from a running service.
  This is how the shell normally bootstraps itself.
* :func:`load_spec` -- Load a spec from any explicit source.
* :func:`validate_openapi_version` -- Reject Swagger 2.x and documents without
  an ``openapi`` field.

Every failure surfaces as :class:`~forge_cli.exceptions.SpecError`, which is
fatal at startup.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from forge_cli.exceptions import SpecError
from forge_cli.output import debug


def fetch_spec(
    base_url: str,
    spec_path: str = "/api-docs/openapi.json",
    client: Optional[httpx.Client] = None,
    timeout: float = 30.0,
) -> dict[str, Any]:
    """Fetch the API description published by the service at *base_url*.

    Args:
        base_url: Service root, e.g. ``http://127.0.0.1:8080``.
        spec_path: Location of the document relative to *base_url*.
        client: Optional pre-configured client (tests pass one backed by
            :class:`httpx.MockTransport`).
        timeout: Request timeout in seconds when no *client* is given.

    Raises:
        SpecError: On transport failure, non-2xx status, or unparseable content.
    """
    url = f"{base_url.rstrip('/')}/{spec_path.lstrip('/')}"
    debug(f"Fetching OpenAPI spec from: {url}")
    if client is None:
        with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
            return _fetch(owned, url)
    return _fetch(client, url)


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI spec from URL, file path, or stdin (``-``).

    Raises:
        SpecError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        with httpx.Client(timeout=30.0, follow_redirects=True) as client:
            return _fetch(client, source)
    return _load_from_file(source)


def _fetch(client: httpx.Client, url: str) -> dict[str, Any]:
    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        raise SpecError(f"Failed to fetch spec from {url}: {exc}") from exc

    if not response.is_success:
        raise SpecError(
            f"Failed to fetch spec from {url}, status: {response.status_code}"
        )

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return _parse_content(response.text, hint=hint)


def _load_from_stdin() -> dict[str, Any]:
    content = sys.stdin.read()
    if not content.strip():
        raise SpecError("No input received from stdin")
    return _parse_content(content)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON, then YAML, unless *hint* pins one format.

    Valid JSON is also valid YAML, so JSON goes first: it is stricter and
    gives better error messages.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecError(f"Invalid JSON: {exc}") from exc
            json_error = exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecError(msg) from exc
    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecError(f"Spec must be a JSON/YAML object (got {kind})")
    return result


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the ``openapi`` version string (any 3.x).

    Raises:
        SpecError: For Swagger 2.x, a missing ``openapi`` field, or a
            non-3.x version.
    """
    if "swagger" in spec:
        raise SpecError(
            f"Swagger {spec['swagger']} is not supported. "
            "Only OpenAPI 3.x documents are supported."
        )

    version = spec.get("openapi")
    if version is None:
        raise SpecError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SpecError(
            f"Unsupported OpenAPI version: {version_str}. "
            "Only OpenAPI 3.x documents are supported."
        )
    return version_str
