"""Specifier parsing, import map resolution and import extraction."""

from .import_map import ImportMap
from .imports import ImportRef, extract_imports
from .models import (
    BareSpecifier,
    LocalSpecifier,
    RegistryKind,
    RegistrySpecifier,
    Specifier,
    UrlSpecifier,
)
from .parser import is_url, parse_registry_specifier, parse_specifier

__all__ = [
    "BareSpecifier",
    "ImportMap",
    "ImportRef",
    "LocalSpecifier",
    "RegistryKind",
    "RegistrySpecifier",
    "Specifier",
    "UrlSpecifier",
    "extract_imports",
    "is_url",
    "parse_registry_specifier",
    "parse_specifier",
]
