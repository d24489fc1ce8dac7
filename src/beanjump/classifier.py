"""Annotation occurrence extraction from parsed Java syntax trees.

The classifier only reports which annotations are written where. It attaches
every annotation to the nearest enclosing type, method, constructor, field or
formal parameter, and leaves all interpretation to the metadata extractor.
"""

import logging

from tree_sitter import Node, Tree

from beanjump.models import AnnotationOccurrence, AnnotationTarget, SourceLocation, TargetKind

logger = logging.getLogger(__name__)

TYPE_DECLARATIONS = (
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
    "annotation_type_declaration",
)

ANNOTATION_NODES = ("marker_annotation", "annotation")

PARAMETER_NODES = ("formal_parameter", "spread_parameter")


def node_text(node: Node | None) -> str:
    """Decode a node's source text, or return "" for a missing node."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8", errors="replace")


def node_location(node: Node, file_id: str) -> SourceLocation:
    return SourceLocation(
        file_id=file_id,
        line=node.start_point[0],
        column=node.start_point[1],
        end_line=node.end_point[0],
        end_column=node.end_point[1],
    )


def find_child(node: Node, node_type: str) -> Node | None:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def parameter_name(param: Node) -> str:
    """Name of a formal or spread (varargs) parameter."""
    name_node = param.child_by_field_name("name")
    if name_node is None:
        # spread_parameter wraps its name in a variable_declarator
        declarator = find_child(param, "variable_declarator")
        if declarator is not None:
            name_node = declarator.child_by_field_name("name")
    return node_text(name_node)


def package_name(root: Node) -> str:
    """Package declared by a compilation unit, or "" for the default package."""
    package_decl = find_child(root, "package_declaration")
    if package_decl is None:
        return ""
    for child in package_decl.named_children:
        if child.type in ("scoped_identifier", "identifier"):
            return node_text(child)
    return ""


def annotation_parameters(arguments: Node | None) -> dict[str, str]:
    """Raw text of each annotation argument, keyed by element name.

    A lone unnamed argument (``@Qualifier("x")``) is stored under "value".
    """
    parameters: dict[str, str] = {}
    if arguments is None:
        return parameters
    for child in arguments.named_children:
        if child.type == "element_value_pair":
            key = node_text(child.child_by_field_name("key"))
            value = child.child_by_field_name("value")
            if key:
                parameters[key] = node_text(value)
        elif child.type not in ("line_comment", "block_comment"):
            parameters["value"] = node_text(child)
    return parameters


class AnnotationClassifier:
    """Extract annotation occurrences from a Java syntax tree."""

    def extract(self, tree: Tree | None, file_id: str) -> list[AnnotationOccurrence]:
        """Extract every annotation attached to a declaration in the file.

        Args:
            tree: Parsed tree for one file, or None if parsing failed
            file_id: Identifier of the file (used in locations)

        Returns:
            List of AnnotationOccurrence objects in source order. Empty if the
            tree is missing or has no program node.
        """
        root = getattr(tree, "root_node", None)
        if root is None or root.type != "program":
            return []

        package = package_name(root)
        imports = self._extract_imports(root)

        occurrences: list[AnnotationOccurrence] = []
        for child in root.children:
            if child.type in TYPE_DECLARATIONS:
                self._visit_type(child, package, file_id, imports, occurrences)
        return occurrences

    def _extract_imports(self, root: Node) -> dict[str, str]:
        """Map simple names to qualified names for single-type imports."""
        imports = {}
        for child in root.children:
            if child.type != "import_declaration":
                continue
            if find_child(child, "static") or find_child(child, "asterisk"):
                continue
            for sub in child.named_children:
                if sub.type in ("scoped_identifier", "identifier"):
                    qualified = node_text(sub)
                    imports[qualified.rsplit(".", 1)[-1]] = qualified
        return imports

    def _visit_type(
        self,
        node: Node,
        outer: str,
        file_id: str,
        imports: dict[str, str],
        occurrences: list[AnnotationOccurrence],
    ) -> None:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            logger.debug(f"Skipping unnamed type declaration in {file_id}")
            return
        qualified = f"{outer}.{name}" if outer else name

        target = AnnotationTarget(
            kind=TargetKind.CLASS,
            name=name,
            owner=qualified,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            node=node,
        )
        self._collect(node, target, file_id, imports, occurrences)

        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_body(body, qualified, file_id, imports, occurrences)

    def _visit_body(
        self,
        body: Node,
        owner: str,
        file_id: str,
        imports: dict[str, str],
        occurrences: list[AnnotationOccurrence],
    ) -> None:
        for member in body.children:
            if member.type in TYPE_DECLARATIONS:
                self._visit_type(member, owner, file_id, imports, occurrences)
            elif member.type == "enum_body_declarations":
                self._visit_body(member, owner, file_id, imports, occurrences)
            elif member.type == "field_declaration":
                declarator = member.child_by_field_name("declarator")
                name = node_text(declarator.child_by_field_name("name")) if declarator else ""
                target = self._member_target(member, TargetKind.FIELD, name, owner)
                self._collect(member, target, file_id, imports, occurrences)
            elif member.type in ("method_declaration", "constructor_declaration"):
                kind = TargetKind.METHOD if member.type == "method_declaration" else TargetKind.CONSTRUCTOR
                name = node_text(member.child_by_field_name("name"))
                target = self._member_target(member, kind, name, owner)
                self._collect(member, target, file_id, imports, occurrences)
                self._visit_parameters(member, owner, file_id, imports, occurrences)

    def _visit_parameters(
        self,
        method: Node,
        owner: str,
        file_id: str,
        imports: dict[str, str],
        occurrences: list[AnnotationOccurrence],
    ) -> None:
        params = method.child_by_field_name("parameters")
        if params is None:
            return
        for param in params.named_children:
            if param.type not in PARAMETER_NODES:
                continue
            target = self._member_target(param, TargetKind.PARAMETER, parameter_name(param), owner)
            self._collect(param, target, file_id, imports, occurrences)

    @staticmethod
    def _member_target(node: Node, kind: TargetKind, name: str, owner: str) -> AnnotationTarget:
        return AnnotationTarget(
            kind=kind,
            name=name,
            owner=owner,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            node=node,
        )

    def _collect(
        self,
        node: Node,
        target: AnnotationTarget,
        file_id: str,
        imports: dict[str, str],
        occurrences: list[AnnotationOccurrence],
    ) -> None:
        """Append the annotations found in a declaration's modifiers."""
        modifiers = find_child(node, "modifiers")
        if modifiers is None:
            return
        for child in modifiers.children:
            if child.type not in ANNOTATION_NODES:
                continue
            try:
                occurrence = self._build_occurrence(child, target, file_id, imports)
            except (AttributeError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping malformed annotation in {file_id}: {e}")
                continue
            if occurrence is not None:
                occurrences.append(occurrence)

    def _build_occurrence(
        self,
        node: Node,
        target: AnnotationTarget,
        file_id: str,
        imports: dict[str, str],
    ) -> AnnotationOccurrence | None:
        written = node_text(node.child_by_field_name("name"))
        if not written:
            return None

        if "." in written:
            name = written.rsplit(".", 1)[-1]
            resolved_name = written
        else:
            name = written
            resolved_name = imports.get(written)

        return AnnotationOccurrence(
            name=name,
            location=node_location(node, file_id),
            target=target,
            resolved_name=resolved_name,
            parameters=annotation_parameters(node.child_by_field_name("arguments")),
        )
