"""Build a :class:`~forge_cli.models.SpecDocument` from a raw OpenAPI dict.

The single public entry point is :func:`extract_spec`. It resolves internal
``$ref`` pointers and then keeps only what the grammar compiler and the
dispatcher consume:

* ``GET``, ``POST``, ``PUT``, ``DELETE`` and ``PATCH`` operations. Other
  methods are ignored.
* ``path`` and ``query`` parameters. Header and cookie parameters are dropped.
* Whether the request body declares ``application/json`` content.
* Server base-path prefixes (the path part of each ``servers[].url``).

Parameter merging follows OpenAPI: path-level parameters provide defaults and
operation-level parameters override them when ``name`` and ``in`` match. Path
parameters are always required regardless of their ``required`` field.

Malformed but structurally valid input never raises here; unknown shapes are
skipped or kept opaque for the compiler to degrade gracefully.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

from forge_cli.models import (
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    RequestBody,
    SpecDocument,
)
from forge_cli.parser.resolver import resolve_refs

# Fixed iteration order; subcommands of one path are emitted in this order.
_HTTP_METHODS = (
    HTTPMethod.GET,
    HTTPMethod.POST,
    HTTPMethod.PUT,
    HTTPMethod.DELETE,
    HTTPMethod.PATCH,
)


def extract_spec(raw_spec: dict[str, Any]) -> SpecDocument:
    """Extract a :class:`~forge_cli.models.SpecDocument` from *raw_spec*.

    Args:
        raw_spec: The document as returned by
            :func:`~forge_cli.parser.loader.load_spec` or
            :func:`~forge_cli.parser.loader.fetch_spec`.

    Raises:
        SpecError: If a ``$ref`` cannot be resolved.

    Example::

        raw = fetch_spec("http://127.0.0.1:8080")
        validate_openapi_version(raw)
        spec = extract_spec(raw)
        for path, item in spec.paths.items():
            print(path, [m.value for m in item.operations])
    """
    spec = resolve_refs(raw_spec)
    info = spec.get("info") if isinstance(spec.get("info"), dict) else {}
    return SpecDocument(
        title=str(info.get("title") or "API"),
        version=str(info.get("version") or "0.0.0"),
        paths=_extract_paths(spec.get("paths")),
        servers=_extract_servers(spec.get("servers")),
    )


def _extract_servers(servers: Any) -> list[str]:
    """Return the base-path prefix of each server entry, without trailing slash.

    ``http://api.example.com/v2/`` gives ``/v2``; ``/`` and entries without a
    path give ``""`` and are dropped.
    """
    if not isinstance(servers, list):
        return []

    prefixes: list[str] = []
    for server in servers:
        if not isinstance(server, dict) or not isinstance(server.get("url"), str):
            continue
        prefix = urlparse(server["url"]).path.rstrip("/")
        if prefix:
            if not prefix.startswith("/"):
                prefix = "/" + prefix
            prefixes.append(prefix)
    return prefixes


def _extract_paths(paths: Any) -> dict[str, PathItem]:
    if not isinstance(paths, dict):
        return {}

    result: dict[str, PathItem] = {}
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue

        shared_params = _as_list(path_item.get("parameters"))
        operations: dict[HTTPMethod, Operation] = {}

        for method in _HTTP_METHODS:
            raw_op = path_item.get(method.value)
            if not isinstance(raw_op, dict):
                continue

            merged = _merge_parameters(shared_params, _as_list(raw_op.get("parameters")))
            operations[method] = Operation(
                operation_id=raw_op.get("operationId"),
                summary=raw_op.get("summary"),
                description=raw_op.get("description"),
                parameters=_extract_parameters(merged),
                request_body=_extract_request_body(raw_op.get("requestBody")),
            )

        if operations:
            result[str(path)] = PathItem(operations=operations)
    return result


def _as_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters (operation wins)."""
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [
        p for p in path_params
        if (p.get("name", ""), p.get("in", "")) not in overridden
    ]
    merged.extend(op_params)
    return merged


def _extract_parameters(params_list: list[dict[str, Any]]) -> list[Parameter]:
    parameters: list[Parameter] = []

    for param in params_list:
        name = param.get("name")
        if not isinstance(name, str) or not name:
            continue
        try:
            location = ParameterLocation(param.get("in", "query"))
        except ValueError:
            # header / cookie
            continue

        schema = param.get("schema")
        if not isinstance(schema, dict):
            schema = None

        required = bool(param.get("required", False))
        if location == ParameterLocation.PATH:
            required = True

        parameters.append(
            Parameter(
                name=name,
                location=location,
                required=required,
                description=param.get("description"),
                schema=schema,
                enum_values=enum_values(schema),
            )
        )

    return parameters


def enum_values(schema: Optional[dict[str, Any]]) -> Optional[list[str]]:
    """Return the schema's ``enum`` as display strings, or ``None``.

    Booleans are rendered the way they are typed on the command line
    (``true``/``false``) rather than Python's ``True``/``False``.
    """
    if not isinstance(schema, dict):
        return None
    values = schema.get("enum")
    if not isinstance(values, list) or not values:
        return None
    rendered: list[str] = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, bool):
            rendered.append("true" if value else "false")
        else:
            rendered.append(str(value))
    return rendered or None


def _extract_request_body(body: Any) -> RequestBody | None:
    if not isinstance(body, dict):
        return None

    content = body.get("content")
    content_types = list(content.keys()) if isinstance(content, dict) else []
    return RequestBody(
        required=bool(body.get("required", False)),
        json="application/json" in content_types,
        content_types=content_types,
    )
