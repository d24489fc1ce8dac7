"""In-memory index of bean declarations and injection points.

The index keeps several derived views over the declarations and use-sites of
every indexed file. Writers (``add_file`` / ``remove_file``) are serialized by
a lock and publish a new immutable snapshot in a single assignment, so readers
never lock and never observe a half-applied update.
"""

import logging
import threading
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from beanjump.models import (
    Declaration,
    DeclarationKind,
    IndexStats,
    Mechanism,
    SourceLocation,
    UseSite,
    erase_generics,
    simple_name,
)

logger = logging.getLogger(__name__)

INDEX_FORMAT_VERSION = 1


def types_match(a: str, b: str) -> bool:
    """Whether two type references may denote the same type.

    Identical names match; a dotted name also matches the bare simple name
    equal to its last segment, in either direction. Generic arguments are
    ignored. ``com.x.Foo`` and ``com.y.Foo`` do not match.
    """
    a = erase_generics(a)
    b = erase_generics(b)
    if not a or not b:
        return False
    if a == b:
        return True
    if "." in a and "." not in b:
        return a.rsplit(".", 1)[-1] == b
    if "." in b and "." not in a:
        return b.rsplit(".", 1)[-1] == a
    return False


@dataclass(frozen=True)
class _Snapshot:
    """One consistent generation of every view."""
    file_declarations: Mapping[str, tuple[Declaration, ...]] = field(default_factory=dict)
    file_use_sites: Mapping[str, tuple[UseSite, ...]] = field(default_factory=dict)
    by_simple_type: Mapping[str, tuple[Declaration, ...]] = field(default_factory=dict)
    by_simple_supertype: Mapping[str, tuple[Declaration, ...]] = field(default_factory=dict)
    by_name: Mapping[str, Declaration] = field(default_factory=dict)
    # Insertion order of files; later files win name collisions
    file_order: tuple[str, ...] = ()


class IndexView:
    """Type and name lookups over one snapshot of a BeanIndex."""

    def __init__(self, snapshot: _Snapshot):
        self._snapshot = snapshot

    def by_type(self, type_name: str) -> list[Declaration]:
        candidates = self._snapshot.by_simple_type.get(simple_name(type_name), ())
        return [d for d in candidates if types_match(d.type, type_name)]

    def by_supertype(self, type_name: str) -> list[Declaration]:
        candidates = self._snapshot.by_simple_supertype.get(simple_name(type_name), ())
        return [
            d for d in candidates
            if any(types_match(supertype, type_name) for supertype in d.implemented_types)
        ]

    def by_name(self, name: str) -> Declaration | None:
        return self._snapshot.by_name.get(name)


class BeanIndex:
    """Multi-keyed store of declarations and use-sites, updated per file."""

    def __init__(self):
        self._lock = threading.RLock()
        self._snapshot = _Snapshot()

    # Mutation

    def add_file(self, file_id: str, declarations: list[Declaration], use_sites: list[UseSite]) -> None:
        """Replace everything indexed for ``file_id`` with the given records.

        Args:
            file_id: Identifier of the source file
            declarations: Declarations extracted from the file
            use_sites: Use-sites extracted from the file
        """
        self.add_files({file_id: (declarations, use_sites)})

    def add_files(self, entries: Mapping[str, tuple[list[Declaration], list[UseSite]]]) -> None:
        """Apply ``add_file`` for many files as one update.

        Args:
            entries: Mapping of file_id to (declarations, use_sites)

        Raises:
            ValueError: If a record's location names another file. Nothing is
                applied in that case.
        """
        self._commit(entries, replace=False)

    def replace_all(self, entries: Mapping[str, tuple[list[Declaration], list[UseSite]]]) -> None:
        """Replace the whole index with ``entries`` in a single update.

        Readers see either the previous contents or the new ones, never an
        empty index in between.
        """
        self._commit(entries, replace=True)

    def _commit(self, entries: Mapping[str, tuple[list[Declaration], list[UseSite]]], replace: bool) -> None:
        for file_id, (declarations, use_sites) in entries.items():
            _check_file_id(file_id, declarations, use_sites)

        with self._lock:
            current = _Snapshot() if replace else self._snapshot
            file_declarations = dict(current.file_declarations)
            file_use_sites = dict(current.file_use_sites)
            order = [f for f in current.file_order if f not in entries]

            for file_id, (declarations, use_sites) in entries.items():
                file_declarations.pop(file_id, None)
                file_use_sites.pop(file_id, None)
                if declarations:
                    file_declarations[file_id] = tuple(declarations)
                if use_sites:
                    file_use_sites[file_id] = tuple(use_sites)
                if declarations or use_sites:
                    order.append(file_id)

            self._snapshot = self._build(file_declarations, file_use_sites, order)

    def remove_file(self, file_id: str) -> None:
        """Drop every declaration and use-site that came from ``file_id``."""
        with self._lock:
            current = self._snapshot
            if file_id not in current.file_order:
                return
            file_declarations = dict(current.file_declarations)
            file_use_sites = dict(current.file_use_sites)
            file_declarations.pop(file_id, None)
            file_use_sites.pop(file_id, None)
            order = [f for f in current.file_order if f != file_id]
            self._snapshot = self._build(file_declarations, file_use_sites, order)

    def clear(self) -> None:
        with self._lock:
            self._snapshot = _Snapshot()

    @staticmethod
    def _build(
        file_declarations: dict[str, tuple[Declaration, ...]],
        file_use_sites: dict[str, tuple[UseSite, ...]],
        order: list[str],
    ) -> _Snapshot:
        by_simple_type: dict[str, list[Declaration]] = {}
        by_simple_supertype: dict[str, list[Declaration]] = {}
        by_name: dict[str, Declaration] = {}

        for file_id in order:
            for declaration in file_declarations.get(file_id, ()):
                by_simple_type.setdefault(declaration.simple_type, []).append(declaration)
                for supertype in declaration.implemented_types:
                    by_simple_supertype.setdefault(simple_name(supertype), []).append(declaration)
                # Last writer wins on name collisions
                by_name[declaration.name] = declaration

        return _Snapshot(
            file_declarations=MappingProxyType(file_declarations),
            file_use_sites=MappingProxyType(file_use_sites),
            by_simple_type=MappingProxyType({k: tuple(v) for k, v in by_simple_type.items()}),
            by_simple_supertype=MappingProxyType({k: tuple(v) for k, v in by_simple_supertype.items()}),
            by_name=MappingProxyType(by_name),
            file_order=tuple(order),
        )

    # Queries

    def view(self) -> "IndexView":
        """Read-only view pinned to the current snapshot.

        Callers composing several reads use one view so that all of them see
        the same generation of the index.
        """
        return IndexView(self._snapshot)

    def by_type(self, type_name: str) -> list[Declaration]:
        """Declarations whose declared type matches ``type_name`` (see ``types_match``)."""
        return self.view().by_type(type_name)

    def by_supertype(self, type_name: str) -> list[Declaration]:
        """Declarations that directly extend or implement ``type_name``."""
        return self.view().by_supertype(type_name)

    def by_name(self, name: str) -> Declaration | None:
        return self.view().by_name(name)

    def use_sites_of(self, file_id: str) -> list[UseSite]:
        return list(self._snapshot.file_use_sites.get(file_id, ()))

    def declarations_of(self, file_id: str) -> list[Declaration]:
        return list(self._snapshot.file_declarations.get(file_id, ()))

    def declarations(self) -> list[Declaration]:
        snapshot = self._snapshot
        return [d for f in snapshot.file_order for d in snapshot.file_declarations.get(f, ())]

    def use_sites(self) -> list[UseSite]:
        snapshot = self._snapshot
        return [u for f in snapshot.file_order for u in snapshot.file_use_sites.get(f, ())]

    def files(self) -> list[str]:
        return list(self._snapshot.file_order)

    def stats(self) -> IndexStats:
        snapshot = self._snapshot
        return IndexStats(
            declarations=sum(len(v) for v in snapshot.file_declarations.values()),
            use_sites=sum(len(v) for v in snapshot.file_use_sites.values()),
            files=len(snapshot.file_order),
        )

    # Persistence payload

    def serialize(self) -> dict[str, Any]:
        """Flat, versioned payload for session persistence."""
        return {
            "version": INDEX_FORMAT_VERSION,
            "declarations": [asdict(d) for d in self.declarations()],
            "useSites": [asdict(u) for u in self.use_sites()],
        }

    def deserialize(self, payload: Any) -> bool:
        """Replace the index contents with a payload from ``serialize``.

        Returns:
            True if the payload was applied. False if it has another version
            or any record is malformed, in which case the index is unchanged.
        """
        version = payload.get("version") if isinstance(payload, dict) else None
        # bool is an int subclass and True == 1
        if type(version) is not int or version != INDEX_FORMAT_VERSION:
            logger.info("Discarding index payload with mismatched version")
            return False

        try:
            declarations = [_declaration_from_dict(d) for d in payload.get("declarations", [])]
            use_sites = [_use_site_from_dict(u) for u in payload.get("useSites", [])]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed index payload: {e}")
            return False

        file_declarations: dict[str, list[Declaration]] = {}
        file_use_sites: dict[str, list[UseSite]] = {}
        order: list[str] = []
        for declaration in declarations:
            file_id = declaration.location.file_id
            if file_id not in file_declarations and file_id not in file_use_sites:
                order.append(file_id)
            file_declarations.setdefault(file_id, []).append(declaration)
        for use_site in use_sites:
            file_id = use_site.location.file_id
            if file_id not in file_declarations and file_id not in file_use_sites:
                order.append(file_id)
            file_use_sites.setdefault(file_id, []).append(use_site)

        with self._lock:
            self._snapshot = self._build(
                {k: tuple(v) for k, v in file_declarations.items()},
                {k: tuple(v) for k, v in file_use_sites.items()},
                order,
            )
        return True


def _location_from_dict(data: dict[str, Any]) -> SourceLocation:
    return SourceLocation(**data)


def _declaration_from_dict(data: dict[str, Any]) -> Declaration:
    data = dict(data)
    data["kind"] = DeclarationKind(data["kind"])
    data["location"] = _location_from_dict(data["location"])
    return Declaration(**data)


def _use_site_from_dict(data: dict[str, Any]) -> UseSite:
    data = dict(data)
    data["mechanism"] = Mechanism(data["mechanism"])
    data["location"] = _location_from_dict(data["location"])
    return UseSite(**data)


def _check_file_id(file_id: str, declarations: list[Declaration], use_sites: list[UseSite]) -> None:
    for record in (*declarations, *use_sites):
        if record.location.file_id != file_id:
            raise ValueError(
                f"Record located in '{record.location.file_id}' cannot be indexed under '{file_id}'"
            )
