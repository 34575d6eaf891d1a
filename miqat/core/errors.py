# miqat/core/errors.py
"""
Exception taxonomy shared by the engines, the data sources and the HTTP layer.

- ValidationError: bad input (out-of-range coordinates, unknown enum values).
  Raised synchronously, before any trig is attempted. Never clamped.
- SourceError (+ subclasses): a remote data source failed. Recoverable; the
  orchestrator is the outermost boundary that catches it.
- ProviderError: platform capability registry misuse / missing provider.
"""
from __future__ import annotations

from typing import Any, Dict, List, Union

__all__ = [
    "ValidationError",
    "SourceError",
    "SourceUnavailableError",
    "SourcePayloadError",
    "ProviderError",
]


class ValidationError(ValueError):
    """Structured validator error (has .errors(), like pydantic's)."""
    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
            super().__init__(details)
        elif isinstance(details, dict):
            self._details = [details]
            super().__init__(details.get("msg", "validation_error"))
        elif isinstance(details, list):
            self._details = details
            super().__init__(self._details[0]["msg"] if self._details else "validation_error")
        else:
            self._details = [{"loc": [], "msg": "validation_error", "type": "value_error"}]
            super().__init__("validation_error")

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


class SourceError(RuntimeError):
    """A prayer-time data source could not deliver a time set."""
    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class SourceUnavailableError(SourceError):
    """Network failure, timeout or non-2xx HTTP status."""


class SourcePayloadError(SourceError):
    """Reachable, but the payload was malformed or reported an API error."""


class ProviderError(RuntimeError):
    pass
