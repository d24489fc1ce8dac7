from dataclasses import asdict

import pytest

from beanjump.models import (
    Declaration,
    DeclarationKind,
    MatchReason,
    Mechanism,
    SourceLocation,
    UseSite,
    erase_generics,
    simple_name,
)


def _location(line=0):
    return SourceLocation(file_id="src/UserService.java", line=line)


def test_source_location_defaults():
    location = SourceLocation(file_id="A.java", line=3)

    assert location.column == 0
    assert location.end_line is None
    assert location.end_column is None


def test_declaration_creation():
    declaration = Declaration(
        name="userService",
        type="com.example.UserService",
        kind=DeclarationKind.ANNOTATED_TYPE,
        location=_location(4),
        annotation="@Service",
    )

    assert declaration.scope == "singleton"
    assert declaration.qualifiers == []
    assert not declaration.is_primary
    assert declaration.simple_type == "UserService"
    assert declaration.package == "com.example"


def test_declaration_in_default_package():
    declaration = Declaration(
        name="userService",
        type="UserService",
        kind=DeclarationKind.ANNOTATED_TYPE,
        location=_location(),
        annotation="@Service",
    )

    assert declaration.package == ""


def test_declaration_requires_name():
    with pytest.raises(ValueError, match="Bean name is required"):
        Declaration(
            name=" ",
            type="UserService",
            kind=DeclarationKind.ANNOTATED_TYPE,
            location=_location(),
            annotation="@Service",
        )


def test_declaration_requires_type():
    with pytest.raises(ValueError, match="Bean type is required"):
        Declaration(
            name="userService",
            type="",
            kind=DeclarationKind.FACTORY_METHOD,
            location=_location(),
            annotation="@Bean",
        )


def test_declaration_to_dict():
    declaration = Declaration(
        name="wechat",
        type="Pay",
        kind=DeclarationKind.FACTORY_METHOD,
        location=_location(7),
        annotation="@Bean",
        is_primary=True,
    )

    data = asdict(declaration)

    assert data["kind"] == "factory-method"
    assert data["location"]["line"] == 7
    assert data["is_primary"] is True


def test_member_use_site_needs_no_parameter_index():
    use_site = UseSite(requested_type="UserService", mechanism=Mechanism.MEMBER, location=_location())

    assert use_site.is_required
    assert use_site.parameter_index is None


def test_constructor_use_site_requires_parameter_index():
    with pytest.raises(ValueError, match="parameter index"):
        UseSite(
            requested_type="UserService",
            mechanism=Mechanism.CONSTRUCTOR_PARAMETER,
            location=_location(),
        )


def test_setter_use_site_rejects_negative_parameter_index():
    with pytest.raises(ValueError):
        UseSite(
            requested_type="UserService",
            mechanism=Mechanism.SETTER_PARAMETER,
            location=_location(),
            parameter_index=-1,
        )


def test_use_site_requires_requested_type():
    with pytest.raises(ValueError, match="Requested type is required"):
        UseSite(requested_type="", mechanism=Mechanism.MEMBER, location=_location())


def test_use_site_display_name():
    field = UseSite(
        requested_type="UserService",
        mechanism=Mechanism.MEMBER,
        location=_location(),
        member_name="userService",
    )
    param = UseSite(
        requested_type="UserService",
        mechanism=Mechanism.CONSTRUCTOR_PARAMETER,
        location=_location(),
        member_name="UserController",
        parameter_name="service",
        parameter_index=0,
    )

    assert field.display_name == "field: userService"
    assert param.display_name == "parameter: service"


def test_match_reason_scores():
    assert MatchReason.EXACT_QUALIFIER.score == 100
    assert MatchReason.EXACT_NAME.score == 90
    assert MatchReason.PRIMARY.score == 80
    assert MatchReason.TYPE_MATCH.score == 70
    assert MatchReason.SUBTYPE_MATCH.score == 60


def test_match_reason_description():
    assert MatchReason.PRIMARY.description == "@Primary bean"


def test_simple_name():
    assert simple_name("com.example.UserService") == "UserService"
    assert simple_name("UserService") == "UserService"
    assert simple_name("java.util.List<com.example.User>") == "List"


def test_erase_generics():
    assert erase_generics("List<Foo>") == "List"
    assert erase_generics("Map<String, List<Foo>>") == "Map"
    assert erase_generics("byte[]") == "byte"
    assert erase_generics("UserService") == "UserService"
