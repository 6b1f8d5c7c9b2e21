"""In-process operation handlers served through an httpx transport.

A :class:`HandlerRegistry` maps ``operationId`` to an :class:`OperationHandler`.
It is built explicitly at startup and passed to :class:`LocalTransport`, which
answers requests for the operations of a :class:`~forge_cli.models.SpecDocument`
without a network round-trip::

    registry = HandlerRegistry()

    @registry.handler("add")
    def add(params):
        return {"result": params["a"] + params["b"]}

    transport = LocalTransport(spec, registry)
    with Dispatcher(spec, "http://local", transport=transport) as dispatcher:
        ...

For each request the transport merges three sources into one ``params``
mapping, later sources overriding earlier ones:

1. path parameters (strings),
2. query parameters, coerced like the dispatcher does (number, boolean,
   else string),
3. the fields of a JSON object body.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Protocol, Union, runtime_checkable
from urllib.parse import parse_qsl, unquote

import httpx

from forge_cli.client.dispatcher import coerce_value
from forge_cli.models import HTTPMethod, SpecDocument

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"\{([^{}]+)\}")


@dataclass
class HandlerResponse:
    """What an operation handler returns.

    A ``str`` body is sent as ``text/plain``; anything else is serialised as
    JSON. A ``None`` body sends no content.
    """

    status_code: int = 200
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def to_httpx(self) -> httpx.Response:
        if self.body is None:
            return httpx.Response(self.status_code, headers=self.headers)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body, headers=self.headers)
        return httpx.Response(self.status_code, json=self.body, headers=self.headers)


@runtime_checkable
class OperationHandler(Protocol):
    """Business logic for one operation."""

    def invoke(self, params: dict[str, Any]) -> HandlerResponse: ...


class FunctionHandler:
    """Adapt a plain callable to :class:`OperationHandler`.

    The callable may return a :class:`HandlerResponse` or any JSON-serialisable
    value, which is wrapped in a ``200`` response.
    """

    def __init__(self, func: Callable[[dict[str, Any]], Any]) -> None:
        self._func = func

    def invoke(self, params: dict[str, Any]) -> HandlerResponse:
        result = self._func(params)
        if isinstance(result, HandlerResponse):
            return result
        return HandlerResponse(body=result)

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self._func, '__name__', self._func)!r})"


HandlerLike = Union[OperationHandler, Callable[[dict[str, Any]], Any]]


class HandlerRegistry:
    """Explicit ``operationId -> OperationHandler`` map."""

    def __init__(self) -> None:
        self._handlers: dict[str, OperationHandler] = {}

    def register(self, operation_id: str, handler: HandlerLike) -> None:
        """Register *handler* for *operation_id*, replacing any previous one."""
        if not isinstance(handler, OperationHandler):
            handler = FunctionHandler(handler)
        if operation_id in self._handlers:
            logger.warning("Replacing handler for operation '%s'", operation_id)
        self._handlers[operation_id] = handler
        logger.debug("Registered API handler: %s", operation_id)

    def handler(self, operation_id: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`register`."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(operation_id, func)
            return func

        return decorator

    def get(self, operation_id: str) -> Optional[OperationHandler]:
        return self._handlers.get(operation_id)

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)


@dataclass
class _Route:
    pattern: re.Pattern[str]
    method: HTTPMethod
    operation_id: str


def _compile_template(template: str) -> re.Pattern[str]:
    parts = []
    last = 0
    for match in _SEGMENT_RE.finditer(template):
        parts.append(re.escape(template[last : match.start()]))
        parts.append(f"(?P<{_group_name(match.group(1))}>[^/]+)")
        last = match.end()
    parts.append(re.escape(template[last:]))
    return re.compile("^" + "".join(parts) + "$")


def _group_name(name: str) -> str:
    # Regex group names must be identifiers; the original name is recovered below.
    return "p_" + "".join(ch if ch.isalnum() else "_" for ch in name)


class LocalTransport(httpx.BaseTransport):
    """Route requests to registered handlers instead of the network.

    Only operations that declare an ``operationId`` with a registered handler
    are routable. Anything else answers ``404``; a handler that raises
    answers ``500`` with the error message.
    """

    def __init__(self, spec: SpecDocument, registry: HandlerRegistry) -> None:
        self._base_path = spec.base_path.rstrip("/")
        self._registry = registry
        self._routes: list[tuple[_Route, dict[str, str]]] = []

        for path, item in spec.paths.items():
            names = {_group_name(n): n for n in _SEGMENT_RE.findall(path)}
            for method, operation in item.operations.items():
                if not operation.operation_id or operation.operation_id not in registry:
                    continue
                route = _Route(_compile_template(path), method, operation.operation_id)
                self._routes.append((route, names))

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        # Routes match the still-encoded path; %2F inside a value is not a separator.
        path = self._strip_base_path(request.url.raw_path.decode("ascii").partition("?")[0])

        method = request.method.lower()
        for route, names in self._routes:
            if route.method.value != method:
                continue
            match = route.pattern.match(path)
            if match is None:
                continue
            params: dict[str, Any] = {
                names[group]: unquote(value) for group, value in match.groupdict().items()
            }
            return self._invoke(route.operation_id, request, params)

        return httpx.Response(
            404, json={"error": f"No route for {request.method} {unquote(path)}"}
        )

    def _strip_base_path(self, path: str) -> str:
        base = self._base_path
        if base and (path == base or path.startswith(base + "/")):
            return path[len(base) :] or "/"
        return path

    def _invoke(
        self, operation_id: str, request: httpx.Request, params: dict[str, Any]
    ) -> httpx.Response:
        for key, value in parse_qsl(request.url.query.decode(), keep_blank_values=True):
            params[key] = coerce_value(value)

        content_type = request.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                body = json.loads(request.read() or b"null")
            except json.JSONDecodeError:
                body = None
            if isinstance(body, dict):
                params.update(body)

        handler = self._registry.get(operation_id)
        assert handler is not None
        try:
            response = handler.invoke(params)
        except Exception as exc:
            logger.exception("Handler for '%s' failed", operation_id)
            return httpx.Response(500, json={"error": str(exc)})
        return response.to_httpx()
