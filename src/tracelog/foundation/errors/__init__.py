"""Error types for tracelog.

- TracelogError: base exception
- PanicError: raised after a PANIC record is written
- ConfigurationError: invalid logger configuration
"""

from .errors import ConfigurationError, PanicError, TracelogError

__all__ = ["ConfigurationError", "PanicError", "TracelogError"]
