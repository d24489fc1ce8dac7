from pathlib import Path

from beanjump.parsers.base import BaseParser
from beanjump.parsers.java_parser import JavaParser

PARSERS: dict[str, type[BaseParser]] = {
    ".java": JavaParser,
}


def get_parser_for_file(file_path: Path) -> BaseParser | None:
    """Return a parser instance for the file's extension, or None if unsupported."""
    parser_class = PARSERS.get(file_path.suffix.lower())
    if parser_class is None:
        return None
    return parser_class()


__all__ = ["BaseParser", "JavaParser", "get_parser_for_file"]
