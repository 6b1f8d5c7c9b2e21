"""Compile a :class:`~forge_cli.models.SpecDocument` into a command grammar.

This is the core of forge_cli. The grammar is flat: the root
:class:`~forge_cli.models.CommandNode` has one child per (path, method) pair
and every child carries its own flags.

**Naming**

The subcommand name is the path with the leading ``/`` stripped, remaining
``/`` replaced by ``.``, and ``{``/``}`` removed, followed by ``.`` and the
lower-case method::

    /v1/products/{id}  GET   ->  v1.products.id.get
    /v1/add            POST  ->  v1.add.post

Two distinct pairs that derive the same name (``/a.b`` and ``/a/b``, both
GET, give ``a.b.get``) are rejected with
:class:`~forge_cli.exceptions.GrammarError`. Placeholders keep their names,
so ``/users/{id}`` and ``/users/{name}`` stay distinct.

**Flags**

1. Each path parameter becomes a required, value-taking flag.
2. Each query parameter becomes a value-taking flag, required per its own
   ``required`` attribute. An object-typed query parameter is expanded into
   one flag per property instead, and each property's required-ness comes
   from the object schema's ``required`` list alone.
3. A JSON request body becomes ``--body``/``-b``, required per the body.

Unknown schema shapes degrade to a single opaque value-taking flag, so
compilation of a structurally valid document never fails for any other
reason. The output is deterministic: same document, same tree.
"""

from __future__ import annotations

from typing import Any, Optional

from forge_cli.exceptions import GrammarError
from forge_cli.models import (
    CommandNode,
    FlagSource,
    FlagSpec,
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    SpecDocument,
)
from forge_cli.output import debug
from forge_cli.parser.extractor import enum_values

ROOT_NAME = "forge-api-cli"
BODY_FLAG = "body"
BODY_HELP = "The JSON request body as a string."


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def command_prefix(path: str) -> str:
    """Dotted form of a path template: ``/v1/products/{id}`` -> ``v1.products.id``."""
    return path.lstrip("/").replace("/", ".").replace("{", "").replace("}", "")


def command_name(path: str, method: HTTPMethod | str) -> str:
    """Derive the subcommand name for *path* and *method*."""
    verb = method.value if isinstance(method, HTTPMethod) else str(method).lower()
    return f"{command_prefix(path)}.{verb}"


def resolve_command(spec: SpecDocument, name: str) -> Optional[tuple[str, HTTPMethod]]:
    """Map a subcommand *name* back to its ``(path template, method)`` pair.

    The method is the last dotted segment. The rest is compared against the
    dotted form of every path of *spec*, so placeholder segments match by
    their brace-stripped name. Returns ``None`` when nothing matches.
    """
    prefix, _, verb = name.rpartition(".")
    try:
        method = HTTPMethod(verb)
    except ValueError:
        return None

    for path, item in spec.paths.items():
        if method in item.operations and command_prefix(path) == prefix:
            return path, method
    return None


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def compile_grammar(spec: SpecDocument) -> CommandNode:
    """Build the root :class:`~forge_cli.models.CommandNode` for *spec*.

    Raises:
        GrammarError: If two (path, method) pairs derive the same name.
    """
    children: list[CommandNode] = []
    origin: dict[str, str] = {}

    for path, item in spec.paths.items():
        for method, operation in item.operations.items():
            name = command_name(path, method)
            if name in origin:
                raise GrammarError(
                    f"Subcommand name '{name}' is derived from both "
                    f"'{origin[name]}' and '{path}' ({method.value.upper()})"
                )
            origin[name] = path
            children.append(
                CommandNode(
                    name=name,
                    help=operation.help_text,
                    flags=_build_flags(operation),
                    path=path,
                    method=method,
                    operation=operation,
                )
            )

    debug(f"Compiled {len(children)} subcommands from '{spec.title}'")
    return CommandNode(
        name=ROOT_NAME,
        help=f"{spec.title} {spec.version}".strip(),
        children=children,
    )


def _build_flags(operation: Operation) -> list[FlagSpec]:
    flags: list[FlagSpec] = []
    seen: set[str] = set()

    def add(flag: FlagSpec) -> None:
        if flag.name in seen:
            return
        seen.add(flag.name)
        flags.append(flag)

    for param in operation.parameters:
        if param.location == ParameterLocation.PATH:
            add(
                FlagSpec(
                    name=_flag_name(param),
                    required=True,
                    help=param.description or "",
                    choices=param.enum_values,
                    source=FlagSource.PATH,
                    param_name=param.name,
                )
            )

    for param in operation.parameters:
        if param.location != ParameterLocation.QUERY:
            continue
        properties = _object_properties(param.schema_)
        if properties is None:
            add(
                FlagSpec(
                    name=_flag_name(param),
                    required=param.required,
                    help=param.description or "",
                    choices=param.enum_values,
                    source=FlagSource.QUERY,
                    param_name=param.name,
                )
            )
            continue

        required_props = _required_list(param.schema_)
        for prop_name, prop_schema in properties.items():
            prop_schema = prop_schema if isinstance(prop_schema, dict) else {}
            add(
                FlagSpec(
                    name=f"{BODY_FLAG}-query" if prop_name == BODY_FLAG else prop_name,
                    required=prop_name in required_props,
                    help=str(prop_schema.get("description") or ""),
                    choices=enum_values(prop_schema),
                    source=FlagSource.QUERY,
                    param_name=prop_name,
                )
            )

    body = operation.request_body
    if body is not None and body.json_content:
        add(
            FlagSpec(
                name=BODY_FLAG,
                short="b",
                required=body.required,
                help=BODY_HELP,
                source=FlagSource.BODY,
                param_name=BODY_FLAG,
            )
        )
    return flags


def _flag_name(param: Parameter) -> str:
    """Flag name for *param*; ``body`` is reserved for the request body."""
    if param.name == BODY_FLAG:
        return f"{BODY_FLAG}-{param.location.value}"
    return param.name


def _object_properties(schema: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Return the ``properties`` of an object schema, or ``None`` if not expandable."""
    if not isinstance(schema, dict):
        return None
    schema_type = schema.get("type")
    is_object = schema_type == "object" or (
        isinstance(schema_type, list) and "object" in schema_type
    )
    properties = schema.get("properties")
    if not isinstance(properties, dict) or not properties:
        return None
    if schema_type is not None and not is_object:
        return None
    return properties


def _required_list(schema: Optional[dict[str, Any]]) -> set[str]:
    required = (schema or {}).get("required")
    if not isinstance(required, list):
        return set()
    return {str(name) for name in required}


# ---------------------------------------------------------------------------
# Usage rendering
# ---------------------------------------------------------------------------


def render_usage(root: CommandNode) -> str:
    """Usage text for the whole grammar: every subcommand with its help."""
    lines = ["Usage: <command> [flags]", ""]
    if root.help:
        lines.extend([root.help, ""])
    if not root.children:
        lines.append("No commands available.")
        return "\n".join(lines)

    width = max(len(child.name) for child in root.children)
    lines.append("Commands:")
    for child in root.children:
        lines.append(f"  {child.name.ljust(width)}  {child.help}".rstrip())
    lines.extend(["", "Run 'help <command>' for the flags of one command."])
    return "\n".join(lines)


def render_command_usage(node: CommandNode) -> str:
    """Usage text for one subcommand: synopsis, help, and flag table."""
    synopsis = [node.name]
    for flag in node.flags:
        part = flag.long_form + (f" <{flag.name.upper()}>" if flag.takes_value else "")
        synopsis.append(part if flag.required else f"[{part}]")

    lines = ["Usage: " + " ".join(synopsis)]
    if node.help:
        lines.extend(["", node.help])
    if node.flags:
        labels = [_flag_label(flag) for flag in node.flags]
        width = max(len(label) for label in labels)
        lines.extend(["", "Flags:"])
        for label, flag in zip(labels, node.flags):
            text = flag.help
            if flag.required:
                text = f"(required) {text}".strip()
            if flag.choices:
                text = f"{text} [possible values: {', '.join(flag.choices)}]".strip()
            lines.append(f"  {label.ljust(width)}  {text}".rstrip())
    return "\n".join(lines)


def _flag_label(flag: FlagSpec) -> str:
    label = flag.long_form
    if flag.short_form:
        label = f"{flag.short_form}, {label}"
    if flag.takes_value:
        label += f" <{flag.name}>"
    return label
