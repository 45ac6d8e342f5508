"""
Build diagnostics.

Diagnostics are the single channel through which stages report problems.
They are appended to a shared list and reported together when the build
finishes.
"""

import traceback
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class DiagnosticLevel(Enum):
    """Severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @classmethod
    def from_string(cls, value: str) -> "DiagnosticLevel":
        """Convert string to DiagnosticLevel, defaulting to ERROR if invalid."""
        try:
            return cls(value)
        except ValueError:
            return cls.ERROR


@dataclass
class Diagnostic:
    """A build-time message with an optional source location.

    Attributes:
        level: Severity of the message
        message: Human readable description
        file_path: Source file the message refers to
        line: 1-based line number
        column: 0-based column offset
        stack: Formatted traceback of the originating exception
        code: Short machine readable category (e.g. "transform", "style")
    """

    level: DiagnosticLevel
    message: str
    file_path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    stack: Optional[str] = None
    code: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.level == DiagnosticLevel.ERROR

    @classmethod
    def error(cls, message: str, **kwargs: Any) -> "Diagnostic":
        return cls(level=DiagnosticLevel.ERROR, message=message, **kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: Any) -> "Diagnostic":
        return cls(level=DiagnosticLevel.WARNING, message=message, **kwargs)

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        level: DiagnosticLevel = DiagnosticLevel.ERROR,
        code: Optional[str] = None,
    ) -> "Diagnostic":
        """Create a diagnostic from an exception, keeping its stack.

        Location attributes set on Spire errors (file_path, line, column)
        are carried over.
        """
        stack = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
        return cls(
            level=level,
            message=str(error) or type(error).__name__,
            file_path=getattr(error, "file_path", None),
            line=getattr(error, "line", None),
            column=getattr(error, "column", None),
            stack=stack,
            code=code,
        )

    def format(self) -> str:
        """Format as `path:line:col: message`."""
        location = ""
        if self.file_path:
            location = self.file_path
            if self.line is not None:
                location += f":{self.line}"
                if self.column is not None:
                    location += f":{self.column}"
            location += ": "
        return f"{location}{self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["level"] = self.level.value
        return data


def has_errors(diagnostics: List[Diagnostic]) -> bool:
    """Return True if any diagnostic is an error."""
    return any(d.is_error for d in diagnostics)
