from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TargetKind(str, Enum):
    """Kind of declaration an annotation is attached to."""
    CLASS = "class"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    FIELD = "field"
    PARAMETER = "parameter"


class DeclarationKind(str, Enum):
    """How a bean is declared."""
    ANNOTATED_TYPE = "annotated-type"
    FACTORY_METHOD = "factory-method"


class Mechanism(str, Enum):
    """How a dependency is requested."""
    MEMBER = "member"
    CONSTRUCTOR_PARAMETER = "constructor-parameter"
    SETTER_PARAMETER = "setter-parameter"
    SYNTHESIZED_CONSTRUCTOR = "synthesized-constructor"


class MatchReason(str, Enum):
    """Why a declaration was offered as a candidate for a use-site."""
    EXACT_QUALIFIER = "exact-qualifier"
    EXACT_NAME = "exact-name"
    PRIMARY = "primary"
    TYPE_MATCH = "type-match"
    SUBTYPE_MATCH = "subtype-match"

    @property
    def score(self) -> int:
        return _MATCH_SCORES[self]

    @property
    def description(self) -> str:
        return _MATCH_DESCRIPTIONS[self]


_MATCH_SCORES = {
    MatchReason.EXACT_QUALIFIER: 100,
    MatchReason.EXACT_NAME: 90,
    MatchReason.PRIMARY: 80,
    MatchReason.TYPE_MATCH: 70,
    MatchReason.SUBTYPE_MATCH: 60,
}

_MATCH_DESCRIPTIONS = {
    MatchReason.EXACT_QUALIFIER: "Exact @Qualifier match",
    MatchReason.EXACT_NAME: "Exact bean name match",
    MatchReason.PRIMARY: "@Primary bean",
    MatchReason.TYPE_MATCH: "Type match",
    MatchReason.SUBTYPE_MATCH: "Subtype match",
}


class ConstructorKind(str, Enum):
    """Constructor-generating annotation found on a class."""
    REQUIRED_ARGS = "required-args"
    ALL_ARGS = "all-args"


class OnConstructorSyntax(str, Enum):
    """Which spelling of the onConstructor parameter was used."""
    JAVA7 = "java7"
    JAVA8_UNDERSCORE = "java8-underscore"
    JAVA8_DOUBLE_UNDERSCORE = "java8-double-underscore"


@dataclass
class SourceLocation:
    """Position of a construct in a source file (0-indexed)."""
    file_id: str
    line: int
    column: int = 0
    end_line: int | None = None
    end_column: int | None = None


@dataclass
class AnnotationTarget:
    """The declaration an annotation occurrence belongs to."""
    kind: TargetKind
    name: str
    owner: str  # Qualified name of the enclosing type ("" when unknown)
    start_byte: int
    end_byte: int
    node: Any = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> tuple[str, int, int]:
        """Identity used to group occurrences sharing one target."""
        return (self.kind.value, self.start_byte, self.end_byte)


@dataclass
class AnnotationOccurrence:
    """One annotation as written in source, attached to its target."""
    name: str  # Simple name, without "@"
    location: SourceLocation
    target: AnnotationTarget | None = None
    resolved_name: str | None = None
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass
class Declaration:
    """A bean definition: something able to satisfy an injection at runtime."""
    name: str
    type: str
    kind: DeclarationKind
    location: SourceLocation
    annotation: str  # e.g. "@Service"
    scope: str = "singleton"
    qualifiers: list[str] = field(default_factory=list)
    is_primary: bool = False
    is_conditional: bool = False
    implemented_types: list[str] = field(default_factory=list)

    def __post_init__(self):
        errors = self.validate()
        if errors:
            raise ValueError(f"Invalid declaration: {'; '.join(errors)}")

    def validate(self) -> list[str]:
        errors = []
        if not self.name or not self.name.strip():
            errors.append("Bean name is required")
        if not self.type or not self.type.strip():
            errors.append("Bean type is required")
        if self.location is not None and self.location.line < 0:
            errors.append("Line number must be >= 0")
        return errors

    @property
    def simple_type(self) -> str:
        return simple_name(self.type)

    @property
    def package(self) -> str:
        head, _, _ = self.type.rpartition(".")
        return head


@dataclass
class UseSite:
    """An injection point: a place in source requesting a dependency."""
    requested_type: str
    mechanism: Mechanism
    location: SourceLocation
    qualifier: str | None = None
    explicit_name: str | None = None
    is_required: bool = True
    member_name: str | None = None  # Field or method name
    parameter_name: str | None = None
    parameter_index: int | None = None

    def __post_init__(self):
        errors = self.validate()
        if errors:
            raise ValueError(f"Invalid use-site: {'; '.join(errors)}")

    def validate(self) -> list[str]:
        errors = []
        if not self.requested_type or not self.requested_type.strip():
            errors.append("Requested type is required")
        if self.mechanism in (Mechanism.CONSTRUCTOR_PARAMETER, Mechanism.SETTER_PARAMETER):
            if self.parameter_index is None or self.parameter_index < 0:
                errors.append("Valid parameter index is required for constructor/setter injection")
        if self.location is not None and self.location.line < 0:
            errors.append("Line number must be >= 0")
        return errors

    @property
    def display_name(self) -> str:
        if self.parameter_name:
            return f"parameter: {self.parameter_name}"
        if self.member_name:
            return f"field: {self.member_name}"
        return "unknown"


@dataclass
class Candidate:
    """A declaration offered for a use-site, with its score."""
    declaration: Declaration
    score: int
    reason: MatchReason
    display_label: str
    display_description: str
    display_detail: str


@dataclass
class ConstructorDescriptor:
    """A class whose generated constructor is an injection point."""
    kind: ConstructorKind
    syntax: OnConstructorSyntax
    location: SourceLocation
    owner: str = ""


@dataclass
class FieldInfo:
    """A field declaration as seen by the constructor generator."""
    name: str
    type: str
    owner: str
    location: SourceLocation
    has_non_null: bool = False
    is_final: bool = False
    qualifier: str | None = None
    annotations: list[str] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """Declarations and use-sites found in one file."""
    declarations: list[Declaration] = field(default_factory=list)
    use_sites: list[UseSite] = field(default_factory=list)


@dataclass
class IndexStats:
    """Whole-index counters."""
    declarations: int
    use_sites: int
    files: int


def simple_name(type_name: str) -> str:
    """Return the last dotted segment of a (possibly qualified) type name."""
    return erase_generics(type_name).rsplit(".", 1)[-1]


def erase_generics(type_name: str) -> str:
    """Strip generic arguments and array brackets: ``List<Foo>[]`` -> ``List``."""
    base = type_name.split("<", 1)[0]
    return base.replace("[]", "").strip()
