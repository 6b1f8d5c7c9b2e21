"""Turn a parsed command into an HTTP request, send it, and format the reply.

This module bridges the grammar and the network. Given a matched
:class:`~forge_cli.models.CommandNode` and its bound flag values,
:class:`Dispatcher` does the following:

1. Substitutes path flags into the node's path template. A placeholder left
   unresolved is a :class:`~forge_cli.exceptions.DispatchError`.
2. Collects query flags. The URL carries each value as typed, except that
   ``true``/``false`` in any case is normalised. A coerced copy (numbers and
   booleans) is kept on the prepared request for inspection, matching what
   in-process handlers receive.
3. Builds ``base_url + server prefix + path + ?query``.
4. Parses ``--body`` as JSON when the operation declares JSON content.
5. Sends the request with :mod:`httpx` and renders the response: JSON is
   pretty-printed, anything else is returned verbatim, and a non-2xx status
   adds an ``HTTP <status> <reason>`` line in front. Non-2xx is not an error
   here; only transport failures are.

Any :class:`httpx.BaseTransport` can stand in for the network, including
:class:`~forge_cli.client.local.LocalTransport` (in-process handlers) and
:class:`httpx.MockTransport` (tests).
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import httpx

from forge_cli.exceptions import ConnectionError_, DispatchError
from forge_cli.exit_codes import EXIT_INVALID_USAGE
from forge_cli.grammar.compiler import resolve_command
from forge_cli.models import CommandNode, FlagSource, RequestConfig, SpecDocument
from forge_cli.output import get_output

QueryValue = Union[str, int, float, bool]

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")
_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def coerce_value(value: Any) -> QueryValue:
    """Coerce a textual flag value to ``int``/``float``/``bool`` where it parses as one.

    Example::

        >>> coerce_value("42"), coerce_value("2.5"), coerce_value("TRUE"), coerce_value("abc")
        (42, 2.5, True, 'abc')
    """
    if isinstance(value, bool) or not isinstance(value, str):
        return value
    text = value.strip()
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        number = float(text)
        if math.isfinite(number):
            return number
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return value


def encode_bool(value: bool) -> str:
    return "true" if value else "false"


def encode_query(query: Mapping[str, QueryValue]) -> str:
    """URL-encode a query map, writing booleans as ``true``/``false``."""
    pairs = []
    for key, value in query.items():
        if isinstance(value, bool):
            value = encode_bool(value)
        pairs.append((key, str(value)))
    return urlencode(pairs)


# ---------------------------------------------------------------------------
# Request / result containers
# ---------------------------------------------------------------------------


@dataclass
class PreparedRequest:
    """A fully marshalled request, ready to send or to print in dry-run mode."""

    method: str
    url: str
    query: dict[str, QueryValue] = field(default_factory=dict)
    query_text: dict[str, str] = field(default_factory=dict)
    json_body: Any = None
    has_body: bool = False

    @property
    def full_url(self) -> str:
        """``url`` plus the encoded query string, if any.

        The wire carries ``query_text`` (the values as typed) when it is set,
        so ``007`` is not sent as ``7``. ``query`` holds the coerced values.
        """
        wire = self.query_text or self.query
        if not wire:
            return self.url
        return f"{self.url}?{encode_query(wire)}"


@dataclass
class DispatchResult:
    """Status and body text of a completed exchange."""

    status_code: int
    reason: str
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def status_line(self) -> str:
        return f"HTTP {self.status_code} {self.reason}".rstrip()


def pretty_body(text: str) -> str:
    """Re-serialise *text* with indentation if it is JSON, else return it unchanged."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def format_result(result: DispatchResult) -> str:
    """Render *result* for display; non-2xx responses get a status line first."""
    body = pretty_body(result.text)
    if result.is_success:
        return body
    if not body:
        return result.status_line
    return f"{result.status_line}\n{body}"


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class Dispatcher:
    """Marshal parsed commands into HTTP requests against one service.

    Holds a single :class:`httpx.Client` for the whole session. Use it as a
    context manager so the client is closed on exit.

    Args:
        spec: The spec the grammar was compiled from (server prefix, and
            reverse resolution for nodes without a back-pointer).
        base_url: Service root, e.g. ``http://127.0.0.1:8080``.
        client: Pre-built client. When given, the dispatcher does not close it.
        transport: Transport for the client the dispatcher builds itself.
        request: Timeout / SSL settings.
        dry_run: When ``True``, :meth:`execute` describes the request instead
            of sending it.

    Example::

        with Dispatcher(spec, "http://127.0.0.1:8080") as dispatcher:
            print(dispatcher.execute(parsed.node, parsed.values))
    """

    def __init__(
        self,
        spec: SpecDocument,
        base_url: str,
        client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
        request: Optional[RequestConfig] = None,
        dry_run: bool = False,
    ) -> None:
        self._spec = spec
        self._base_url = base_url.rstrip("/")
        self._dry_run = dry_run
        self._owns_client = client is None
        if client is None:
            config = request or RequestConfig()
            client = httpx.Client(
                transport=transport,
                timeout=config.timeout,
                verify=config.verify_ssl,
                follow_redirects=True,
            )
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base_url

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Marshalling
    # ------------------------------------------------------------------ #

    def prepare(self, node: CommandNode, values: Mapping[str, Any]) -> PreparedRequest:
        """Build the :class:`PreparedRequest` for *node* with bound *values*.

        Raises:
            DispatchError: Unknown command, unresolved placeholder, or a
                ``--body`` that is not valid JSON.
        """
        path, method = node.path, node.method
        if path is None or method is None:
            resolved = resolve_command(self._spec, node.name)
            if resolved is None:
                raise DispatchError(f"No operation found for '{node.name}'")
            path, method = resolved
        operation = node.operation or self._spec.get_operation(path, method)

        final_path = path
        query: dict[str, QueryValue] = {}
        query_text: dict[str, str] = {}
        body_text: Optional[str] = None

        for flag in node.flags:
            if flag.name not in values:
                continue
            value = values[flag.name]
            if flag.source == FlagSource.PATH:
                final_path = final_path.replace(
                    "{" + flag.param_name + "}", quote(str(value), safe="")
                )
            elif flag.source == FlagSource.QUERY:
                typed = coerce_value(value)
                query[flag.param_name] = typed
                query_text[flag.param_name] = (
                    encode_bool(typed) if isinstance(typed, bool) else str(value)
                )
            elif flag.source == FlagSource.BODY:
                body_text = str(value)

        unresolved = _PLACEHOLDER_RE.findall(final_path)
        if unresolved:
            raise DispatchError(
                f"Unresolved path parameter(s) for '{node.name}': "
                + ", ".join(unresolved),
                exit_code=EXIT_INVALID_USAGE,
            )

        prepared = PreparedRequest(
            method=method.value.upper(),
            url=f"{self._base_url}{self._spec.base_path}{final_path}",
            query=query,
            query_text=query_text,
        )

        declares_json = bool(
            operation and operation.request_body and operation.request_body.json_content
        )
        if body_text is not None and declares_json:
            try:
                prepared.json_body = json.loads(body_text)
            except json.JSONDecodeError as exc:
                raise DispatchError(
                    f"Invalid JSON in --body: {exc}", exit_code=EXIT_INVALID_USAGE
                ) from exc
            prepared.has_body = True

        return prepared

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def send(self, prepared: PreparedRequest) -> DispatchResult:
        """Send *prepared* and return the status and body text.

        Raises:
            ConnectionError_: On network-level failure.
            DispatchError: On any other transport-level failure.
        """
        output = get_output()
        output.info(f"--> Making {prepared.method} request to: {prepared.full_url}")

        kwargs: dict[str, Any] = {"headers": {"Accept": "application/json"}}
        if prepared.has_body:
            kwargs["json"] = prepared.json_body

        try:
            response = self._client.request(prepared.method, prepared.full_url, **kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(
                f"HTTP request to {prepared.full_url} failed: {exc}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DispatchError(f"HTTP request failed: {exc}") from exc

        result = DispatchResult(
            status_code=response.status_code,
            reason=response.reason_phrase or "",
            text=response.text,
        )
        output.info(f"<-- Response Status: {result.status_code} {result.reason}".rstrip())
        return result

    def execute(self, node: CommandNode, values: Mapping[str, Any]) -> str:
        """Prepare, send, and format one call. Returns the text to display."""
        prepared = self.prepare(node, values)
        if self._dry_run:
            return describe_request(prepared)
        return format_result(self.send(prepared))


def describe_request(prepared: PreparedRequest) -> str:
    """Human-readable rendering of *prepared* for ``--dry-run``."""
    lines = [f"[dry-run] {prepared.method} {prepared.full_url}"]
    if prepared.has_body:
        lines.append("Body (JSON):")
        lines.append(json.dumps(prepared.json_body, indent=2, ensure_ascii=False))
    return "\n".join(lines)


def execute(
    node: CommandNode,
    values: Mapping[str, Any],
    base_url: str,
    spec: SpecDocument,
    client: Optional[httpx.Client] = None,
) -> str:
    """One-shot convenience wrapper around :class:`Dispatcher`."""
    with Dispatcher(spec, base_url, client=client) as dispatcher:
        return dispatcher.execute(node, values)
