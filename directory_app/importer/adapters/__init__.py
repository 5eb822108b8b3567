"""File adapters for directory imports."""

from .spreadsheet import (
    GENERIC_HEADER_TEMPLATE,
    SUPPORTED_EXTENSIONS,
    ParsedImportFile,
    build_parsed_file,
    detect_header_row,
    normalize_extension,
    parse_import_file,
)

__all__ = [
    "GENERIC_HEADER_TEMPLATE",
    "SUPPORTED_EXTENSIONS",
    "ParsedImportFile",
    "build_parsed_file",
    "detect_header_row",
    "normalize_extension",
    "parse_import_file",
]
