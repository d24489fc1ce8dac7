"""Project-level indexing: walk a source tree and feed the bean index."""

import logging
from pathlib import Path

from beanjump.config import BeanJumpConfig, load_config
from beanjump.extractor import MetadataExtractor
from beanjump.index import BeanIndex
from beanjump.models import Candidate, ExtractionResult, IndexStats, UseSite
from beanjump.parsers import JavaParser
from beanjump.resolver import BeanResolver

logger = logging.getLogger(__name__)


class ProjectIndexer:
    """Owns the BeanIndex of one project and keeps it in sync with its files.

    File ids are POSIX paths relative to the project root.
    """

    def __init__(self, root: Path, config: BeanJumpConfig | None = None):
        self.root = root.resolve()
        self.config = config if config is not None else load_config(self.root)
        self.index = BeanIndex()
        self.parser = JavaParser()
        self.extractor = MetadataExtractor()
        self.resolver = BeanResolver(subtype_matching=self.config.resolution.subtype_matching)

    def file_id(self, path: Path) -> str:
        path = path if path.is_absolute() else self.root / path
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return path.resolve().as_posix()

    def should_exclude(self, path: Path) -> bool:
        """True if any directory between the root and ``path`` is excluded."""
        try:
            parts = path.resolve().relative_to(self.root).parts[:-1]
        except ValueError:
            return False
        excluded = set(self.config.indexing.exclude_dirs)
        return any(part in excluded for part in parts)

    def find_java_files(self) -> list[Path]:
        return sorted(
            path for path in self.root.rglob("*.java")
            if path.is_file() and not self.should_exclude(path)
        )

    def extract_file(self, path: Path) -> ExtractionResult:
        """Read, parse and extract one file. Unreadable files yield an empty result."""
        path = path if path.is_absolute() else self.root / path
        file_id = self.file_id(path)
        try:
            source_code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read {file_id}: {e}")
            return ExtractionResult()

        if self.config.indexing.quick_scan:
            if not self.parser.quick_scan(source_code).has_spring_annotations:
                return ExtractionResult()

        tree = self.parser.parse(source_code)
        return self.extractor.extract_tree(tree, file_id)

    def build(self) -> IndexStats:
        """Index every Java file under the root, replacing the current contents."""
        files = self.find_java_files()
        logger.info(f"Found {len(files)} Java files under {self.root}")

        entries = {}
        for path in files:
            result = self.extract_file(path)
            entries[self.file_id(path)] = (result.declarations, result.use_sites)

        self.index.replace_all(entries)

        stats = self.index.stats()
        logger.info(f"Indexed {stats.declarations} beans and {stats.use_sites} injection points from {stats.files} files")
        return stats

    def update_file(self, path: Path) -> None:
        result = self.extract_file(path)
        self.index.add_file(self.file_id(path), result.declarations, result.use_sites)

    def remove_file(self, path: Path) -> None:
        self.index.remove_file(self.file_id(path))

    def use_sites_at(self, path: Path, line: int) -> list[UseSite]:
        """Use-sites of a file whose source range covers ``line`` (0-indexed)."""
        matches = []
        for use_site in self.index.use_sites_of(self.file_id(path)):
            location = use_site.location
            end_line = location.end_line if location.end_line is not None else location.line
            if location.line <= line <= end_line:
                matches.append(use_site)
        return matches

    def resolve(self, use_site: UseSite) -> list[Candidate]:
        return self.resolver.resolve(use_site, self.index)

    def resolve_at(self, path: Path, line: int) -> list[tuple[UseSite, list[Candidate]]]:
        return [(u, self.resolve(u)) for u in self.use_sites_at(path, line)]
