"""litpage Environment package: configuration, loaders and errors.

Re-exports the public symbols so ``from litpage.environment import
Environment`` works without knowing the module layout.

"""

from litpage.environment.config import Mode, Settings
from litpage.environment.core import Environment
from litpage.environment.exceptions import (
    CycleDetectedError,
    ErrorCode,
    PathEscapeError,
    SourceSnippet,
    TemplateDecodeError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    build_source_snippet,
)
from litpage.environment.loaders import DictLoader, FileSystemLoader

__all__ = [
    "CycleDetectedError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Mode",
    "PathEscapeError",
    "Settings",
    "SourceSnippet",
    "TemplateDecodeError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "build_source_snippet",
]
