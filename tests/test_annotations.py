from beanjump.annotations import (
    DECLARATION_KINDS,
    INJECTION_KINDS,
    INJECTION_TRIGGER,
    AnnotationKind,
    classify,
    is_conditional,
)


def test_classify_simple_name():
    assert classify("Service") is AnnotationKind.SERVICE
    assert classify("Autowired") is AnnotationKind.AUTOWIRED


def test_classify_strips_at_sign_and_package():
    assert classify("@Component") is AnnotationKind.COMPONENT
    assert classify("org.springframework.stereotype.Repository") is AnnotationKind.REPOSITORY
    assert classify("@javax.inject.Inject") is AnnotationKind.INJECT


def test_classify_unknown_annotation():
    assert classify("GetMapping") is None
    assert classify("Override") is None
    assert classify("") is None


def test_classify_is_case_sensitive():
    assert classify("service") is None


def test_declaration_and_injection_kinds_are_disjoint():
    assert not DECLARATION_KINDS & INJECTION_KINDS
    assert AnnotationKind.BEAN in DECLARATION_KINDS
    assert AnnotationKind.RESOURCE in INJECTION_KINDS


def test_label():
    assert AnnotationKind.REST_CONTROLLER.label == "@RestController"


def test_injection_trigger():
    assert INJECTION_TRIGGER == "Autowired"


def test_is_conditional():
    assert is_conditional("Conditional")
    assert is_conditional("@ConditionalOnProperty")
    assert is_conditional("org.springframework.boot.autoconfigure.condition.ConditionalOnMissingBean")
    assert not is_conditional("Configuration")
