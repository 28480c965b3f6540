"""User callbacks run around event submission.

Two shapes are accepted for each slot: a plain callable, or a
``(receiver, method_name)`` pair. Both are validated once, when the
configuration is built, and wrapped in a ``Hook`` with a uniform
``invoke``.
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from faultline.errors import ConfigurationError


class Hook(ABC):
    """A validated user callback."""

    @abstractmethod
    def invoke(self, *args: Any) -> Any:
        """Call the hook with ``args``."""


class FunctionHook(Hook):
    def __init__(self, function: Callable[..., Any]):
        self.function = function

    def invoke(self, *args: Any) -> Any:
        return self.function(*args)

    def __repr__(self) -> str:
        return f"FunctionHook({self.function!r})"


class MethodHook(Hook):
    """Looks the method up on every call, so patched receivers are honoured."""

    def __init__(self, target: Any, name: str):
        self.target = target
        self.name = name

    def invoke(self, *args: Any) -> Any:
        return getattr(self.target, self.name)(*args)

    def __repr__(self) -> str:
        return f"MethodHook({self.target!r}, {self.name!r})"


def coerce_hook(value: Any, arity: int, option: str) -> Hook | None:
    """Validate a configured hook value.

    Args:
        value: ``None``, a ``Hook``, a callable, or a ``(receiver, name)`` pair
        arity: Number of positional arguments the hook is called with
        option: Option name used in error messages

    Returns:
        A ``Hook``, or None when the slot is empty

    Raises:
        ConfigurationError: If the value has any other shape or the wrong arity
    """
    message = f"{option} must be a callable taking {arity} argument(s) or a (receiver, method_name) tuple"

    if value is None or isinstance(value, Hook):
        return value

    if isinstance(value, tuple):
        if len(value) != 2 or not isinstance(value[1], str):
            raise ConfigurationError(message)
        target, name = value
        method = getattr(target, name, None)
        if not callable(method) or not _accepts(method, arity):
            raise ConfigurationError(f"{message}, got {target!r}.{name}")
        return MethodHook(target, name)

    if callable(value):
        if not _accepts(value, arity):
            raise ConfigurationError(f"{message}, got {value!r}")
        return FunctionHook(value)

    raise ConfigurationError(f"{message}, got {value!r}")


def _accepts(function: Callable[..., Any], arity: int) -> bool:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        # No introspectable signature (some builtins); trust the caller.
        return True

    try:
        signature.bind(*([None] * arity))
    except TypeError:
        return False
    return True
