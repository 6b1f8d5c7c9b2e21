"""API description parser -- fetch, resolve ``$ref`` pointers, and build the spec model.

Typical usage::

    from forge_cli.parser import fetch_spec, validate_openapi_version, extract_spec

    raw = fetch_spec("http://127.0.0.1:8080")
    validate_openapi_version(raw)
    spec = extract_spec(raw)

Sub-modules:

* :mod:`~forge_cli.parser.loader` -- I/O layer (service URL, URL, file, stdin)
  plus format detection and OpenAPI version validation.
* :mod:`~forge_cli.parser.resolver` -- Internal ``$ref`` resolution.
* :mod:`~forge_cli.parser.extractor` -- Builds the
  :class:`~forge_cli.models.SpecDocument`.
"""

from forge_cli.parser.extractor import extract_spec
from forge_cli.parser.loader import fetch_spec, load_spec, validate_openapi_version

__all__ = ["extract_spec", "fetch_spec", "load_spec", "validate_openapi_version"]
