"""
Errors raised by quantumpkg.

Everything derives from :class:`QuantumError`. Each error carries a
``details`` mapping (dependency name, failing step, path, URL, ...) that
the CLI prints next to the message and logs at debug level. Resolution
failures are :class:`ResolutionError` subclasses and name the dependency
being resolved when it is known.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

#: Captured command output and response bodies are cut to this many characters.
MAX_DETAIL_LENGTH = 200


def _present(**fields: Any) -> Dict[str, Any]:
    """Keep only the fields that were actually supplied."""
    return {key: value for key, value in fields.items() if value is not None}


def _shorten(text: str, limit: int = MAX_DETAIL_LENGTH) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


class QuantumError(Exception):
    """Root of the quantumpkg error hierarchy.

    Args:
        message: What went wrong, for humans.
        details: Extra context; rendered as ``key=value`` pairs by ``str()``.
    """

    __slots__ = ("message", "details")

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


class ConfigError(QuantumError):
    """Invalid or unreadable quantumpkg settings."""

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        super().__init__(message, _present(config=config_path, option=option))
        self.config_path = config_path
        self.option = option


class ResolutionError(QuantumError):
    """A dependency could not be resolved.

    Args:
        message: Error description.
        dependency: Declared name of the dependency.
        step: Where resolution stopped: ``registry``, ``git``, ``path``,
            ``extract``, ``traverse``, ...
        details: Subclass-specific context, appended after the above.
    """

    __slots__ = ("dependency", "step")

    def __init__(
        self,
        message: str,
        *,
        dependency: Optional[str] = None,
        step: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        context = _present(dependency=dependency, step=step)
        context.update(details or {})
        super().__init__(message, context)
        self.dependency = dependency
        self.step = step


class SpecError(ResolutionError):
    """A dependency declaration matches none of registry, path or git."""


class DepthExceededError(ResolutionError):
    """The worklist reached an entry deeper than ``max_depth``."""

    __slots__ = ("depth", "max_depth")

    def __init__(
        self,
        message: str,
        *,
        dependency: Optional[str] = None,
        depth: Optional[int] = None,
        max_depth: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            dependency=dependency,
            step="traverse",
            details=_present(depth=depth, max_depth=max_depth),
        )
        self.depth = depth
        self.max_depth = max_depth


class NotFoundError(ResolutionError):
    """A path dependency directory or a registry artifact does not exist."""

    __slots__ = ("location",)

    def __init__(
        self,
        message: str,
        *,
        dependency: Optional[str] = None,
        step: Optional[str] = None,
        location: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            dependency=dependency,
            step=step,
            details=_present(location=location),
        )
        self.location = location


class FetchError(ResolutionError):
    """A download or a ``git`` command failed.

    ``output`` keeps the full captured stderr; ``details`` only a shortened copy.
    """

    __slots__ = ("source", "output")

    def __init__(
        self,
        message: str,
        *,
        dependency: Optional[str] = None,
        step: Optional[str] = None,
        source: Optional[str] = None,
        output: Optional[str] = None,
    ) -> None:
        context = _present(source=source)
        if output and output.strip():
            context["output"] = _shorten(output.strip())
        super().__init__(message, dependency=dependency, step=step, details=context)
        self.source = source
        self.output = output


class ExtractError(ResolutionError):
    """A downloaded archive is corrupt or tries to escape its directory."""

    __slots__ = ("destination",)

    def __init__(
        self,
        message: str,
        *,
        dependency: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            dependency=dependency,
            step="extract",
            details=_present(destination=destination),
        )
        self.destination = destination


class ParseError(QuantumError):
    """A ``Quantum.toml`` or ``Quantum.lock`` is not well-formed."""

    __slots__ = ("file_path", "dependency")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        dependency: Optional[str] = None,
    ) -> None:
        super().__init__(message, _present(file=file_path, dependency=dependency))
        self.file_path = file_path
        self.dependency = dependency


class NetworkError(QuantumError):
    """An HTTP request failed; ``status_code`` is set when a response arrived."""

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        context = _present(url=url, status_code=status_code)
        if response_body is not None:
            context["response"] = _shorten(response_body)
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class FileOperationError(QuantumError):
    """Reading, writing or populating a file or cache entry failed."""

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            _present(
                path=file_path,
                operation=operation,
                original_error=str(original_error) if original_error else None,
            ),
        )
        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
