import functools
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

try:
    import psutil  # type: ignore[import-untyped]

    HAS_PSUTIL = True
except ImportError:
    HAS_PSUTIL = False

perfLogger = logging.getLogger("dbresource_core.performance")


def _format_context(context: Dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in context.items())


class PerformanceTracker:
    def __init__(self):
        self.startTime = None
        self.operation = None
        self.context = {}

    def start(self, operation: str, context: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.context = context or {}
        self.startTime = time.perf_counter()
        perfLogger.debug(
            "Started %s (%s)", operation, _format_context(self.context) or "no context"
        )

    def finish(self, additionalContext: Optional[Dict[str, Any]] = None) -> Optional[float]:
        if self.startTime is None:
            return None

        duration = time.perf_counter() - self.startTime
        fullContext = {**self.context, **(additionalContext or {})}

        memoryMb = 0.0
        if HAS_PSUTIL:
            try:
                memoryMb = psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024
            except psutil.Error:
                pass

        if memoryMb > 0:
            perfLogger.info(
                "Completed %s in %.3fs (memory: %.1fMB) %s",
                self.operation,
                duration,
                memoryMb,
                _format_context(fullContext),
            )
        else:
            perfLogger.info(
                "Completed %s in %.3fs %s",
                self.operation,
                duration,
                _format_context(fullContext),
            )

        self.startTime = None
        self.operation = None
        self.context = {}
        return duration


def _result_size(result: Any) -> Dict[str, Any]:
    rows = getattr(result, "rows", None)
    if rows is not None:
        return {"rows": len(rows)}
    if isinstance(result, (list, tuple, dict)):
        return {"result_size": len(result)}
    return {}


def logPerformance(operation: Optional[str] = None, includeArgs: bool = False) -> Callable:
    """Time the wrapped call and log it on the performance logger."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            operationName = operation or f"{func.__module__}.{func.__qualname__}"

            context = {}
            if includeArgs:
                for idx, arg in enumerate(args):
                    rows = getattr(arg, "rows", None)
                    if rows is not None:
                        context[f"arg{idx}_rows"] = len(rows)
                context.update({k: str(v)[:50] for k, v in kwargs.items()})

            tracker = PerformanceTracker()
            tracker.start(operationName, context)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                tracker.finish({"error": str(e)[:100]})
                raise
            tracker.finish(_result_size(result))
            return result

        return wrapper

    return decorator
