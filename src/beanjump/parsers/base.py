from abc import ABC, abstractmethod

from tree_sitter import Tree


class BaseParser(ABC):
    """Abstract base class for language-specific source parsers."""

    @abstractmethod
    def parse(self, source_code: str) -> Tree | None:
        """Parse source code into a syntax tree.

        Args:
            source_code: The source code to parse

        Returns:
            The parsed tree, or None if the source could not be parsed
        """
        pass
