"""Recognized annotation vocabulary.

The set of annotations the extractor understands is fixed, so it is modelled
as a closed enumeration. Anything outside it classifies as ``None`` and is
ignored by the metadata pipeline.
"""

from enum import Enum


class AnnotationKind(Enum):
    COMPONENT = "Component"
    SERVICE = "Service"
    REPOSITORY = "Repository"
    CONTROLLER = "Controller"
    REST_CONTROLLER = "RestController"
    BEAN = "Bean"

    AUTOWIRED = "Autowired"
    RESOURCE = "Resource"
    INJECT = "Inject"

    QUALIFIER = "Qualifier"
    NAMED = "Named"
    PRIMARY = "Primary"
    SCOPE = "Scope"

    REQUIRED_ARGS_CONSTRUCTOR = "RequiredArgsConstructor"
    ALL_ARGS_CONSTRUCTOR = "AllArgsConstructor"
    NON_NULL = "NonNull"

    @property
    def label(self) -> str:
        return f"@{self.value}"


_BY_NAME = {kind.value: kind for kind in AnnotationKind}

DECLARATION_KINDS = frozenset({
    AnnotationKind.COMPONENT,
    AnnotationKind.SERVICE,
    AnnotationKind.REPOSITORY,
    AnnotationKind.CONTROLLER,
    AnnotationKind.REST_CONTROLLER,
    AnnotationKind.BEAN,
})

INJECTION_KINDS = frozenset({
    AnnotationKind.AUTOWIRED,
    AnnotationKind.RESOURCE,
    AnnotationKind.INJECT,
})

QUALIFIER_KINDS = frozenset({
    AnnotationKind.QUALIFIER,
    AnnotationKind.NAMED,
})

CONSTRUCTOR_KINDS = frozenset({
    AnnotationKind.REQUIRED_ARGS_CONSTRUCTOR,
    AnnotationKind.ALL_ARGS_CONSTRUCTOR,
})

# Name of the annotation that turns a generated constructor into an injection point.
INJECTION_TRIGGER = AnnotationKind.AUTOWIRED.value

CONDITIONAL_PREFIX = "Conditional"


def classify(name: str) -> AnnotationKind | None:
    """Map an annotation name (simple or qualified, with or without "@") to its kind."""
    if not name:
        return None
    simple = name.lstrip("@").rsplit(".", 1)[-1]
    return _BY_NAME.get(simple)


def is_conditional(name: str) -> bool:
    """True for ``@Conditional`` and its ``@ConditionalOn*`` family."""
    simple = name.lstrip("@").rsplit(".", 1)[-1]
    return simple.startswith(CONDITIONAL_PREFIX)
