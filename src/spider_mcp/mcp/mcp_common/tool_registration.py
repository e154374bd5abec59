"""
Tool registration helpers.

Tool functions take the service container as their first parameter
(``api_client``). ``create_tool_wrapper`` hides that parameter from the
schema FastMCP builds, injects the container on every call and repairs
arguments that some MCP hosts send as strings ("5", "null", '{"a": 1}').

Usage:
    >>> wrapper = create_tool_wrapper(spider_scrape, services)
    >>> mcp.tool(wrapper)
"""

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from functools import update_wrapper
from types import NoneType, UnionType
from typing import Any, Union, get_args, get_origin

logger = logging.getLogger(__name__)

INJECTED_PARAMS = ("api_client",)


def remove_parameters_from_signature(sig: inspect.Signature, *param_names: str) -> inspect.Signature:
    """Return ``sig`` without the named parameters."""
    return sig.replace(parameters=[p for p in sig.parameters.values() if p.name not in param_names])


def _union_args(annotation: Any) -> tuple[Any, ...]:
    if get_origin(annotation) in (Union, UnionType):
        return get_args(annotation)
    return (annotation,)


def _accepts(annotation: Any, kind: type) -> bool:
    """True if ``annotation`` (or a member of its union) is ``kind`` or ``kind[...]``."""
    return any(arg is kind or get_origin(arg) is kind for arg in _union_args(annotation))


def _is_optional(param: inspect.Parameter) -> bool:
    return param.default is None or NoneType in _union_args(param.annotation)


def _widen_annotation(annotation: Any) -> Any:
    """Let int, list and dict parameters also accept strings at the schema level."""
    if annotation is inspect.Parameter.empty or _accepts(annotation, str):
        return annotation
    if any(_accepts(annotation, kind) for kind in (int, list, dict)) and not _accepts(annotation, bool):
        return annotation | str
    return annotation


def _normalize_value(name: str, value: Any, param: inspect.Parameter) -> Any:
    annotation = param.annotation
    if annotation is inspect.Parameter.empty or value is None:
        return value

    if isinstance(value, str) and value.lower() == "null" and _is_optional(param):
        logger.debug(f"Normalising 'null' to None for {name}")
        return None

    if _accepts(annotation, int) and isinstance(value, str) and not _accepts(annotation, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
        logger.warning(f"Cannot convert '{value}' to int for {name}")
        return value

    for kind in (list, dict):
        if _accepts(annotation, kind) and isinstance(value, str) and not _accepts(annotation, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                logger.warning(f"Cannot parse '{value}' as JSON {kind.__name__} for {name}")
                return value
            if isinstance(parsed, kind):
                return parsed
            logger.warning(f"JSON for {name} is not a {kind.__name__}")
            return value

    if _accepts(annotation, str) and isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def create_tool_wrapper(
    endpoint_func: Callable[..., Awaitable[Any]],
    api_client: Any,
) -> Callable[..., Awaitable[Any]]:
    """
    Wrap a tool function so FastMCP sees only its user-facing parameters.

    Args:
        endpoint_func: Async tool function whose first parameter is ``api_client``
        api_client: Service container injected on every call

    Returns:
        Async wrapper with the original name and docstring, and a signature
        without the injected parameter.
    """
    original_sig = inspect.signature(endpoint_func)
    public_sig = remove_parameters_from_signature(original_sig, *INJECTED_PARAMS)
    public_params = dict(public_sig.parameters)

    new_sig = public_sig.replace(
        parameters=[p.replace(annotation=_widen_annotation(p.annotation)) for p in public_params.values()]
    )
    annotations = {p.name: p.annotation for p in new_sig.parameters.values() if p.annotation is not inspect.Parameter.empty}
    if original_sig.return_annotation is not inspect.Signature.empty:
        annotations["return"] = original_sig.return_annotation

    async def wrapper(**kwargs: Any) -> Any:
        normalized = {
            name: _normalize_value(name, value, public_params[name]) if name in public_params else value
            for name, value in kwargs.items()
        }
        return await endpoint_func(api_client, **normalized)

    wrapper.__doc__ = endpoint_func.__doc__ or f"{endpoint_func.__name__} tool"
    update_wrapper(wrapper, endpoint_func, assigned=("__name__", "__module__", "__qualname__"))
    wrapper.__signature__ = new_sig  # type: ignore[attr-defined]
    wrapper.__annotations__ = annotations
    return wrapper
