import logging
import re
from dataclasses import dataclass

import tree_sitter_java
from tree_sitter import Language, Parser, Tree

from beanjump.parsers.base import BaseParser

logger = logging.getLogger(__name__)

_SPRING_PATTERN = re.compile(
    r"@(?:[\w.]+\.)?(Component|Service|Repository|Controller|RestController|Configuration|Bean"
    r"|Autowired|Resource|Inject|Qualifier|RequiredArgsConstructor|AllArgsConstructor)\b"
)
_DEFINITION_PATTERN = re.compile(r"@(?:[\w.]+\.)?(Component|Service|Repository|Controller|RestController|Bean)\b")
_INJECTION_PATTERN = re.compile(r"@(?:[\w.]+\.)?(Autowired|Resource|Inject)\b")


@dataclass
class QuickScanResult:
    """Outcome of the regex pre-filter run before a full parse."""
    has_spring_annotations: bool = False
    has_definitions: bool = False
    has_injections: bool = False


class JavaParser(BaseParser):
    """Parser for Java source code using tree-sitter."""

    def __init__(self):
        self.language = Language(tree_sitter_java.language())
        self.parser = Parser(self.language)

    def parse(self, source_code: str) -> Tree | None:
        """Parse Java source code.

        tree-sitter is error tolerant: syntax errors produce ERROR nodes rather
        than a failure, so None is only returned when parsing itself fails.
        """
        try:
            tree = self.parser.parse(bytes(source_code, "utf8"))
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse Java source: {e}")
            return None

        if tree.root_node.has_error:
            logger.debug("Java source parsed with syntax errors")
        return tree

    def quick_scan(self, source_code: str) -> QuickScanResult:
        """Cheap textual check for annotations relevant to bean navigation.

        Used to skip the full parse for files that cannot contribute
        declarations or use-sites.
        """
        return QuickScanResult(
            has_spring_annotations=bool(_SPRING_PATTERN.search(source_code)),
            has_definitions=bool(_DEFINITION_PATTERN.search(source_code)),
            has_injections=bool(_INJECTION_PATTERN.search(source_code)),
        )
