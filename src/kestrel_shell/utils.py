from __future__ import annotations

import os

_TRUTHY = {"1", "true", "yes", "on"}

DEBUG_PY_TRACE_ENV = "KESTREL_DEBUG_PY_TRACE"
MULTILINE_ENV = "KESTREL_MULTILINE"


def env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def debug_py_trace_enabled() -> bool:
    """Print Python tracebacks alongside diagnostics."""
    return env_flag(DEBUG_PY_TRACE_ENV)


def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        os.environ.pop(DEBUG_PY_TRACE_ENV, None)


def multiline_default() -> bool:
    """Start sessions in multi-line mode."""
    return env_flag(MULTILINE_ENV)
