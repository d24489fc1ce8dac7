"""Bean metadata extraction from annotation occurrences.

Turns the classifier's occurrences for one file into declarations (beans) and
use-sites (injection points). Field eligibility for Lombok-generated
constructors lives here as well: ``extract_fields`` / ``filter_fields`` /
``to_use_sites``.
"""

import logging
import re
from collections import defaultdict

from tree_sitter import Node, Tree

from beanjump.annotations import (
    DECLARATION_KINDS,
    INJECTION_KINDS,
    QUALIFIER_KINDS,
    AnnotationKind,
    classify,
    is_conditional,
)
from beanjump.classifier import (
    ANNOTATION_NODES,
    PARAMETER_NODES,
    TYPE_DECLARATIONS,
    AnnotationClassifier,
    annotation_parameters,
    find_child,
    node_location,
    node_text,
    package_name,
    parameter_name,
)
from beanjump.lombok import SynthesizedConstructorDetector
from beanjump.models import (
    AnnotationOccurrence,
    ConstructorDescriptor,
    ConstructorKind,
    Declaration,
    DeclarationKind,
    ExtractionResult,
    FieldInfo,
    Mechanism,
    TargetKind,
    UseSite,
    erase_generics,
)

logger = logging.getLogger(__name__)

_STRING_LITERAL = re.compile(r'"((?:[^"\\]|\\.)*)"')

_SKIPPABLE = (ValueError, AttributeError, TypeError, KeyError, UnicodeDecodeError)


def string_value(raw: str | None) -> str | None:
    """First string literal in a raw annotation value, without quotes.

    ``"a"`` -> ``a``; ``{"a", "b"}`` -> ``a``; a constant reference -> None.
    """
    if not raw:
        return None
    match = _STRING_LITERAL.search(raw)
    if match is None:
        return None
    return match.group(1)


def default_bean_name(identifier: str) -> str:
    """Spring's default bean name for a type or method identifier.

    The first character is lower-cased, except when the first two characters
    are both upper case (``URLService`` stays ``URLService``).
    """
    if not identifier:
        return identifier
    if len(identifier) > 1 and identifier[0].isupper() and identifier[1].isupper():
        return identifier
    return identifier[0].lower() + identifier[1:]


def _type_of(node: Node | None) -> str:
    if node is None:
        return ""
    type_node = node.child_by_field_name("type")
    if type_node is None and node.type == "spread_parameter":
        # Varargs carry no "type" field; the type is the first non-modifier child
        type_node = next((c for c in node.named_children if c.type != "modifiers"), None)
    return erase_generics(node_text(type_node))


def _type_list(node: Node | None) -> list[str]:
    """Erased type names under a superclass/super_interfaces/extends_interfaces node."""
    if node is None:
        return []
    types = []
    for child in node.named_children:
        if child.type == "type_list":
            types.extend(_type_list(child))
        else:
            name = erase_generics(node_text(child))
            if name:
                types.append(name)
    return types


def _declarator_names(field_node: Node) -> list[str]:
    names = []
    for declarator in field_node.children_by_field_name("declarator"):
        name = node_text(declarator.child_by_field_name("name"))
        if name:
            names.append(name)
    return names


def _supertypes(class_node: Node) -> list[str]:
    supertypes = []
    supertypes.extend(_type_list(class_node.child_by_field_name("superclass")))
    supertypes.extend(_type_list(class_node.child_by_field_name("interfaces")))
    supertypes.extend(_type_list(find_child(class_node, "extends_interfaces")))
    return supertypes


class MetadataExtractor:
    """Extract bean declarations and injection points for a single file."""

    def __init__(self, detector: SynthesizedConstructorDetector | None = None):
        self.classifier = AnnotationClassifier()
        self.detector = detector or SynthesizedConstructorDetector()

    def extract_tree(self, tree: Tree | None, file_id: str) -> ExtractionResult:
        """Run the classifier and the extractor over one parsed file."""
        if tree is None:
            return ExtractionResult()
        return self.extract(self.classifier.extract(tree, file_id), tree)

    def extract(self, annotations: list[AnnotationOccurrence], tree: Tree | None) -> ExtractionResult:
        """Extract declarations and use-sites from a file's annotations.

        Args:
            annotations: Occurrences produced by AnnotationClassifier for the file
            tree: The same file's tree, used to read fields for generated constructors

        Returns:
            ExtractionResult with declarations and use-sites. Annotations that
            cannot be turned into a usable fact are logged and skipped.
        """
        result = ExtractionResult()
        siblings: dict[tuple, list[AnnotationOccurrence]] = defaultdict(list)
        for occurrence in annotations:
            if occurrence.target is not None:
                siblings[occurrence.target.key].append(occurrence)

        for occurrence in annotations:
            kind = classify(occurrence.name)
            if kind is None:
                continue
            try:
                if kind in DECLARATION_KINDS:
                    declaration = self._create_declaration(occurrence, kind, siblings)
                    if declaration is not None:
                        result.declarations.append(declaration)
                elif kind in INJECTION_KINDS:
                    result.use_sites.extend(self._create_use_sites(occurrence, kind, siblings))
            except _SKIPPABLE as e:
                logger.warning(
                    f"Skipping @{occurrence.name} at {occurrence.location.file_id}:"
                    f"{occurrence.location.line + 1}: {e}"
                )

        result.use_sites.extend(self._synthesized_use_sites(annotations, tree))
        return result

    def _create_declaration(
        self,
        occurrence: AnnotationOccurrence,
        kind: AnnotationKind,
        siblings: dict[tuple, list[AnnotationOccurrence]],
    ) -> Declaration | None:
        target = occurrence.target
        if target is None:
            return None

        explicit_name = string_value(occurrence.parameters.get("value")) or string_value(
            occurrence.parameters.get("name")
        )

        if kind is AnnotationKind.BEAN:
            if target.kind is not TargetKind.METHOD:
                logger.debug(f"Ignoring @Bean on {target.kind.value} {target.name}")
                return None
            declared_type = _type_of(target.node)
            if declared_type == "void":
                raise ValueError(f"@Bean method {target.name} returns void")
            declaration_kind = DeclarationKind.FACTORY_METHOD
            implemented_types = []
        else:
            if target.kind is not TargetKind.CLASS:
                logger.debug(f"Ignoring @{occurrence.name} on {target.kind.value} {target.name}")
                return None
            declared_type = target.owner
            declaration_kind = DeclarationKind.ANNOTATED_TYPE
            implemented_types = _supertypes(target.node) if target.node is not None else []

        related = siblings.get(target.key, [])
        return Declaration(
            name=explicit_name or default_bean_name(target.name),
            type=declared_type,
            kind=declaration_kind,
            location=occurrence.location,
            annotation=kind.label,
            scope=self._scope(related),
            qualifiers=self._qualifiers(related),
            is_primary=any(classify(o.name) is AnnotationKind.PRIMARY for o in related),
            is_conditional=any(is_conditional(o.name) for o in related),
            implemented_types=implemented_types,
        )

    @staticmethod
    def _qualifiers(related: list[AnnotationOccurrence]) -> list[str]:
        qualifiers = []
        for occurrence in related:
            if classify(occurrence.name) in QUALIFIER_KINDS:
                value = string_value(occurrence.parameters.get("value"))
                if value:
                    qualifiers.append(value)
        return qualifiers

    @staticmethod
    def _scope(related: list[AnnotationOccurrence]) -> str:
        for occurrence in related:
            if classify(occurrence.name) is not AnnotationKind.SCOPE:
                continue
            raw = occurrence.parameters.get("value") or occurrence.parameters.get("scopeName")
            value = string_value(raw)
            if value:
                return value
            # ConfigurableBeanFactory.SCOPE_PROTOTYPE and friends
            if raw and "SCOPE_" in raw:
                return raw.rsplit("SCOPE_", 1)[-1].lower()
        return "singleton"

    def _qualifier_for(self, target_key: tuple, siblings: dict[tuple, list[AnnotationOccurrence]]) -> str | None:
        qualifiers = self._qualifiers(siblings.get(target_key, []))
        return qualifiers[0] if qualifiers else None

    def _create_use_sites(
        self,
        occurrence: AnnotationOccurrence,
        kind: AnnotationKind,
        siblings: dict[tuple, list[AnnotationOccurrence]],
    ) -> list[UseSite]:
        target = occurrence.target
        if target is None or target.node is None:
            return []

        explicit_name = None
        if kind is AnnotationKind.RESOURCE:
            explicit_name = string_value(occurrence.parameters.get("name"))

        is_required = True
        if kind is AnnotationKind.AUTOWIRED:
            is_required = occurrence.parameters.get("required", "true").strip() != "false"

        file_id = occurrence.location.file_id

        if target.kind is TargetKind.FIELD:
            # One use-site per declarator: "@Autowired Foo a, b;" injects both
            requested_type = _type_of(target.node)
            location = node_location(target.node, file_id)
            qualifier = self._qualifier_for(target.key, siblings)
            return [
                UseSite(
                    requested_type=requested_type,
                    mechanism=Mechanism.MEMBER,
                    location=location,
                    qualifier=qualifier,
                    explicit_name=explicit_name,
                    is_required=is_required,
                    member_name=name,
                )
                for name in _declarator_names(target.node)
            ]

        if target.kind in (TargetKind.CONSTRUCTOR, TargetKind.METHOD):
            mechanism = (
                Mechanism.CONSTRUCTOR_PARAMETER
                if target.kind is TargetKind.CONSTRUCTOR
                else Mechanism.SETTER_PARAMETER
            )
            return self._parameter_use_sites(
                target.node, target.name, mechanism, explicit_name, is_required, file_id, siblings
            )

        logger.debug(f"Ignoring @{occurrence.name} on {target.kind.value} {target.name}")
        return []

    def _parameter_use_sites(
        self,
        method: Node,
        member_name: str,
        mechanism: Mechanism,
        explicit_name: str | None,
        is_required: bool,
        file_id: str,
        siblings: dict[tuple, list[AnnotationOccurrence]],
    ) -> list[UseSite]:
        params = method.child_by_field_name("parameters")
        if params is None:
            return []

        use_sites = []
        index = 0
        for param in params.named_children:
            if param.type not in PARAMETER_NODES:
                continue
            param_key = (TargetKind.PARAMETER.value, param.start_byte, param.end_byte)
            try:
                use_sites.append(UseSite(
                    requested_type=_type_of(param),
                    mechanism=mechanism,
                    location=node_location(param, file_id),
                    qualifier=self._qualifier_for(param_key, siblings),
                    explicit_name=explicit_name,
                    is_required=is_required,
                    member_name=member_name,
                    parameter_name=parameter_name(param),
                    parameter_index=index,
                ))
            except _SKIPPABLE as e:
                logger.warning(f"Skipping parameter {index} of {member_name} in {file_id}: {e}")
            index += 1
        return use_sites

    def _synthesized_use_sites(
        self,
        annotations: list[AnnotationOccurrence],
        tree: Tree | None,
    ) -> list[UseSite]:
        class_annotations: dict[tuple, list[AnnotationOccurrence]] = defaultdict(list)
        for occurrence in annotations:
            if occurrence.target is not None and occurrence.target.kind is TargetKind.CLASS:
                class_annotations[occurrence.target.key].append(occurrence)

        use_sites = []
        fields = None
        for occurrences in class_annotations.values():
            descriptor = self.detector.detect(occurrences)
            if descriptor is None:
                continue
            if fields is None:
                fields = extract_fields(tree, descriptor.location.file_id)
            owned = [f for f in fields if f.owner == descriptor.owner]
            use_sites.extend(to_use_sites(filter_fields(owned, descriptor)))
        return use_sites


def extract_fields(tree: Tree | None, file_id: str = "") -> list[FieldInfo]:
    """Collect every non-static field declared in the file's types.

    Args:
        tree: Parsed tree for one file
        file_id: Identifier of the file (used in locations)

    Returns:
        One FieldInfo per declared variable, in source order
    """
    root = getattr(tree, "root_node", None)
    if root is None:
        return []

    fields: list[FieldInfo] = []
    package = package_name(root)
    for child in root.children:
        if child.type in TYPE_DECLARATIONS:
            _collect_fields(child, package, file_id, fields)
    return fields


def _collect_fields(type_node: Node, outer: str, file_id: str, fields: list[FieldInfo]) -> None:
    name = node_text(type_node.child_by_field_name("name"))
    if not name:
        return
    owner = f"{outer}.{name}" if outer else name

    body = type_node.child_by_field_name("body")
    if body is None:
        return

    members = list(body.children)
    declarations = find_child(body, "enum_body_declarations")
    if declarations is not None:
        members.extend(declarations.children)

    for member in members:
        if member.type in TYPE_DECLARATIONS:
            _collect_fields(member, owner, file_id, fields)
        elif member.type == "field_declaration":
            try:
                fields.extend(_field_infos(member, owner, file_id))
            except _SKIPPABLE as e:
                logger.warning(f"Skipping field in {owner} ({file_id}): {e}")


def _field_infos(field_node: Node, owner: str, file_id: str) -> list[FieldInfo]:
    modifiers = find_child(field_node, "modifiers")
    keywords = set()
    annotations = []
    has_non_null = False
    qualifier = None

    if modifiers is not None:
        for child in modifiers.children:
            if child.type not in ANNOTATION_NODES:
                keywords.add(child.type)
                continue
            simple = node_text(child.child_by_field_name("name")).rsplit(".", 1)[-1]
            annotations.append(f"@{simple}")
            kind = classify(simple)
            if kind is AnnotationKind.NON_NULL:
                has_non_null = True
            elif kind in QUALIFIER_KINDS and qualifier is None:
                parameters = annotation_parameters(child.child_by_field_name("arguments"))
                qualifier = string_value(parameters.get("value"))

    if "static" in keywords:
        return []

    field_type = _type_of(field_node)
    location = node_location(field_node, file_id)
    infos = []
    for name in _declarator_names(field_node):
        infos.append(FieldInfo(
            name=name,
            type=field_type,
            owner=owner,
            location=location,
            has_non_null=has_non_null,
            is_final="final" in keywords,
            qualifier=qualifier,
            annotations=list(annotations),
        ))
    return infos


def filter_fields(fields: list[FieldInfo], descriptor: ConstructorDescriptor) -> list[FieldInfo]:
    """Keep the fields the generated constructor takes as parameters.

    required-args: fields that are final or marked @NonNull.
    all-args: every field, without looking at modifiers.
    """
    if descriptor.kind is ConstructorKind.ALL_ARGS:
        return list(fields)
    if descriptor.kind is ConstructorKind.REQUIRED_ARGS:
        return [f for f in fields if f.has_non_null or f.is_final]
    return []


def to_use_sites(fields: list[FieldInfo]) -> list[UseSite]:
    """One synthesized-constructor use-site per field, in constructor parameter order."""
    use_sites = []
    for index, info in enumerate(fields):
        try:
            use_sites.append(UseSite(
                requested_type=info.type,
                mechanism=Mechanism.SYNTHESIZED_CONSTRUCTOR,
                location=info.location,
                qualifier=info.qualifier,
                is_required=True,
                member_name=info.name,
                parameter_name=info.name,
                parameter_index=index,
            ))
        except ValueError as e:
            logger.warning(f"Skipping field {info.name} of {info.owner}: {e}")
    return use_sites
