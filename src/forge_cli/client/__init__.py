"""Request dispatch: HTTP marshalling and in-process operation handlers."""

from forge_cli.client.dispatcher import (
    DispatchResult,
    Dispatcher,
    PreparedRequest,
    coerce_value,
    execute,
    format_result,
)
from forge_cli.client.local import (
    FunctionHandler,
    HandlerRegistry,
    HandlerResponse,
    LocalTransport,
    OperationHandler,
)

__all__ = [
    "DispatchResult",
    "Dispatcher",
    "FunctionHandler",
    "HandlerRegistry",
    "HandlerResponse",
    "LocalTransport",
    "OperationHandler",
    "PreparedRequest",
    "coerce_value",
    "execute",
    "format_result",
]
