"""Exception hierarchy shared by the loader, extractor and renderer."""
from __future__ import annotations

from jinja2 import TemplateSyntaxError

__all__ = [
    "TemplaterError",
    "PartNotFoundError",
    "DocumentDecodeError",
    "PackageIOError",
    "MissingBodyError",
    "MalformedXmlError",
    "TemplateSyntaxError",
]


class TemplaterError(Exception):
    """Base class for every error raised by docx_templater."""


class PartNotFoundError(TemplaterError, LookupError):
    """A required archive member or template file does not exist."""


class DocumentDecodeError(TemplaterError, ValueError):
    """Member bytes could not be decoded as UTF-8 text."""


class PackageIOError(TemplaterError, OSError):
    """Reading or writing a DOCX package failed."""


class MissingBodyError(TemplaterError, ValueError):
    """The document XML has no body element."""


class MalformedXmlError(TemplaterError, ValueError):
    """The document XML is not well formed."""
