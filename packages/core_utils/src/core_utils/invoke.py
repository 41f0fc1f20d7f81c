from __future__ import annotations
import inspect
from typing import Any, Callable

__all__ = ["accepted_positional", "call_user_fn"]

def accepted_positional(fn: Callable[..., Any], offered: int) -> int:
    """
    How many of *offered* positional arguments *fn* can take.

    User rules are often written as ``lambda: now()`` or ``lambda value: ...``
    even though the engine always has ``(value, ctx)`` to hand over.
    Builtin types (`str`, `int`, ...) take the value only; other builtins
    without an introspectable signature receive everything.
    """
    if isinstance(fn, type) and fn.__module__ == "builtins":
        return min(1, offered)
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return offered
    count = 0
    for p in sig.parameters.values():
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            return offered
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return min(count, offered)

async def call_user_fn(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async user callback, awaiting the result when needed."""
    result = fn(*args[:accepted_positional(fn, len(args))])
    if inspect.isawaitable(result):
        result = await result
    return result
