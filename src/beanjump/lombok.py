"""Detection of Lombok-generated constructors that act as injection points.

``@RequiredArgsConstructor(onConstructor=@__({@Autowired}))`` and its
``@AllArgsConstructor`` sibling make Lombok emit an ``@Autowired``
constructor, so the class's fields become injection points even though no
field carries an injection annotation itself.
"""

import logging
import re

from beanjump.annotations import AnnotationKind, CONSTRUCTOR_KINDS, INJECTION_TRIGGER, classify
from beanjump.models import AnnotationOccurrence, ConstructorDescriptor, ConstructorKind, OnConstructorSyntax

logger = logging.getLogger(__name__)

# Three spellings of the same parameter, checked in this order.
ON_CONSTRUCTOR_PARAMETERS = ("onConstructor", "onConstructor_", "onConstructor__")

_TRIGGER_PATTERN = re.compile(rf"@\s*{INJECTION_TRIGGER}\b", re.IGNORECASE)
_JAVA7_PATTERN = re.compile(r"@__\s*\(")

_CONSTRUCTOR_KINDS = {
    AnnotationKind.REQUIRED_ARGS_CONSTRUCTOR: ConstructorKind.REQUIRED_ARGS,
    AnnotationKind.ALL_ARGS_CONSTRUCTOR: ConstructorKind.ALL_ARGS,
}


class SynthesizedConstructorDetector:
    """Find a constructor-generating annotation whose constructor is autowired."""

    def detect(self, class_annotations: list[AnnotationOccurrence]) -> ConstructorDescriptor | None:
        """Detect an injecting Lombok constructor among a class's annotations.

        Args:
            class_annotations: Annotations attached to one class declaration

        Returns:
            A ConstructorDescriptor, or None when the class has no
            constructor-generating annotation, the annotation has no
            onConstructor parameter, or that parameter lacks @Autowired.
            Malformed input also yields None.
        """
        try:
            return self._detect(class_annotations)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Constructor annotation not applicable: {e}")
            return None

    def _detect(self, class_annotations: list[AnnotationOccurrence]) -> ConstructorDescriptor | None:
        annotation = None
        kind = None
        for occurrence in class_annotations or []:
            kind = classify(occurrence.name)
            if kind in CONSTRUCTOR_KINDS:
                annotation = occurrence
                break
        if annotation is None:
            return None

        parameter, value = self.extract_on_constructor(annotation)
        if value is None:
            return None

        if not self.contains_trigger(value):
            return None

        return ConstructorDescriptor(
            kind=_CONSTRUCTOR_KINDS[kind],
            syntax=self.determine_syntax(value, parameter),
            location=annotation.location,
            owner=annotation.target.owner if annotation.target is not None else "",
        )

    @staticmethod
    def extract_on_constructor(annotation: AnnotationOccurrence) -> tuple[str | None, str | None]:
        """Return ``(parameter_name, raw_value)`` of the first onConstructor spelling present."""
        parameters = annotation.parameters or {}
        for parameter in ON_CONSTRUCTOR_PARAMETERS:
            value = parameters.get(parameter)
            if value is not None:
                return parameter, str(value)
        return None, None

    @staticmethod
    def contains_trigger(value: str) -> bool:
        """Case-insensitive, whitespace-tolerant check for ``@Autowired``."""
        return bool(_TRIGGER_PATTERN.search(value))

    @staticmethod
    def determine_syntax(value: str, parameter: str | None) -> OnConstructorSyntax:
        if parameter == "onConstructor__":
            return OnConstructorSyntax.JAVA8_DOUBLE_UNDERSCORE
        if parameter == "onConstructor_":
            return OnConstructorSyntax.JAVA8_UNDERSCORE
        if _JAVA7_PATTERN.search(value):
            return OnConstructorSyntax.JAVA7
        return OnConstructorSyntax.JAVA8_UNDERSCORE
