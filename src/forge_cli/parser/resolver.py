"""Inline internal ``$ref`` pointers in an API description.

Object-valued query parameters are usually declared through
``#/components/schemas/...`` references; the compiler needs the inlined
schema to expand their properties into flags. Only internal references are
supported. A reference that is already being resolved higher up the stack is
left as-is, which breaks cycles in self-referencing schemas.
"""

from __future__ import annotations

import copy
from typing import Any

from forge_cli.exceptions import SpecError


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *spec* with every resolvable ``$ref`` inlined.

    Raises:
        SpecError: On external references or pointers into missing keys.
    """
    root = copy.deepcopy(spec)
    return _deep_resolve(root, root, frozenset())


def _lookup(ref: str, root: dict[str, Any]) -> Any:
    """Follow a ``#/a/b/c`` JSON pointer (RFC 6901 escaping) through *root*."""
    if not ref.startswith("#/"):
        raise SpecError(f"External $ref not supported: {ref}")

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecError(f"Cannot resolve $ref '{ref}': '{segment}' not found")
    return current


def _deep_resolve(obj: Any, root: dict[str, Any], seen: frozenset[str]) -> Any:
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            if ref in seen:
                return obj
            return _deep_resolve(_lookup(ref, root), root, seen | {ref})
        return {key: _deep_resolve(value, root, seen) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_deep_resolve(item, root, seen) for item in obj]

    return obj
