"""Canonical Pydantic models shared across all forge_cli modules.

The models fall into three groups:

**Configuration models** -- resolved from CLI flags, environment variables and
an optional project file:
    :class:`RequestConfig` and :class:`CliConfig`.

**Spec models** -- the in-memory API description produced by the parser and
consumed by the grammar compiler and the dispatcher:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`Parameter`,
    :class:`RequestBody`, :class:`Operation`, :class:`PathItem`, and
    :class:`SpecDocument`.

**Grammar models** -- the compiled command tree:
    :class:`FlagSource`, :class:`FlagSpec`, and :class:`CommandNode`.

The spec and grammar models are treated as immutable once built; nothing in
the package mutates them after :func:`~forge_cli.parser.extract_spec` or
:func:`~forge_cli.grammar.compile_grammar` returns.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# --- Config ---


class RequestConfig(BaseModel):
    """HTTP request settings applied to every dispatched call."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CliConfig(BaseModel):
    """Effective configuration for one CLI invocation.

    Produced by :func:`~forge_cli.config.resolve_config`. Nothing here is ever
    written back to disk.
    """

    base_url: Optional[str] = Field(
        default=None, description="Base URL of the target service"
    )
    spec: Optional[str] = Field(
        default=None,
        description="Explicit spec source (URL, file path, or '-'); "
        "when unset the spec is fetched from base_url + spec_path",
    )
    spec_path: str = Field(
        default="/api-docs/openapi.json",
        description="Path of the OpenAPI document relative to base_url",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    history_size: int = Field(default=1000, ge=1, description="Shell history capacity")


# --- Spec ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods that produce subcommands. Other methods are ignored."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"


class ParameterLocation(str, enum.Enum):
    """Parameter locations the grammar understands (header/cookie are dropped)."""

    PATH = "path"
    QUERY = "query"


class Parameter(BaseModel):
    """A single path or query parameter of an :class:`Operation`.

    ``schema_`` is kept verbatim and is only inspected to detect object-valued
    query parameters, which the compiler expands field-by-field.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    enum_values: Optional[list[str]] = None

    model_config = {"populate_by_name": True}


class RequestBody(BaseModel):
    """Request body metadata.

    Only ``json`` matters to the grammar: a ``--body`` flag is emitted when
    the body declares ``application/json`` content.
    """

    required: bool = False
    json_content: bool = Field(default=False, alias="json")
    content_types: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class Operation(BaseModel):
    """One HTTP-method-bound endpoint definition within a path."""

    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None

    @property
    def help_text(self) -> str:
        """Summary, falling back to the description, falling back to ``""``."""
        return self.summary or self.description or ""


class PathItem(BaseModel):
    """Mapping from HTTP method to :class:`Operation` for one path template."""

    operations: dict[HTTPMethod, Operation] = Field(default_factory=dict)


class SpecDocument(BaseModel):
    """The in-memory API description.

    ``paths`` preserves the iteration order of the source document, which in
    turn fixes the order of the compiled subcommands.
    """

    title: str = "API"
    version: str = "0.0.0"
    paths: dict[str, PathItem] = Field(default_factory=dict)
    servers: list[str] = Field(
        default_factory=list, description="Server base-path prefixes, e.g. '/api'"
    )

    @property
    def base_path(self) -> str:
        """The first declared server prefix, or ``""``."""
        return self.servers[0] if self.servers else ""

    def get_operation(self, path: str, method: HTTPMethod) -> Optional[Operation]:
        item = self.paths.get(path)
        if item is None:
            return None
        return item.operations.get(method)


# --- Grammar ---


class FlagSource(str, enum.Enum):
    """Where a flag's value goes when the request is marshalled."""

    PATH = "path"
    QUERY = "query"
    BODY = "body"


class FlagSpec(BaseModel):
    """A compiled command-line flag bound to an API parameter or the request body."""

    name: str = Field(description="Long form without the leading '--'")
    short: Optional[str] = Field(default=None, description="Single-character alias")
    takes_value: bool = True
    required: bool = False
    help: str = ""
    choices: Optional[list[str]] = Field(
        default=None, description="Enumerated values, used for completion only"
    )
    source: FlagSource = FlagSource.QUERY
    param_name: str = Field(
        default="", description="Parameter or property name used on the wire"
    )

    @property
    def long_form(self) -> str:
        return f"--{self.name}"

    @property
    def short_form(self) -> Optional[str]:
        return f"-{self.short}" if self.short else None

    def matches(self, token: str) -> bool:
        """Return ``True`` if *token* is this flag's long or short form."""
        return token == self.long_form or (
            self.short is not None and token == self.short_form
        )


class CommandNode(BaseModel):
    """A node of the compiled command tree.

    The root node has no operation and one child per (path, method) pair.
    Leaf nodes carry the flags and a back-pointer to the path template,
    method, and :class:`Operation` they were compiled from.
    """

    name: str
    help: str = ""
    flags: list[FlagSpec] = Field(default_factory=list)
    children: list[CommandNode] = Field(default_factory=list)
    path: Optional[str] = None
    method: Optional[HTTPMethod] = None
    operation: Optional[Operation] = None

    def child(self, name: str) -> Optional[CommandNode]:
        """Return the direct child named *name*, or ``None``."""
        for node in self.children:
            if node.name == name:
                return node
        return None

    def find_flag(self, token: str) -> Optional[FlagSpec]:
        """Resolve a ``--long`` or ``-s`` token against this node's flags."""
        for flag in self.flags:
            if flag.matches(token):
                return flag
        return None

    def get_flag(self, name: str) -> Optional[FlagSpec]:
        """Look up a flag by its long name (without dashes)."""
        for flag in self.flags:
            if flag.name == name:
                return flag
        return None


CommandNode.model_rebuild()
