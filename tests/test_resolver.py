from unittest.mock import patch

from beanjump.index import BeanIndex, IndexView
from beanjump.models import Declaration, DeclarationKind, MatchReason, Mechanism, SourceLocation, UseSite
from beanjump.resolver import BeanResolver, create_candidate, rank, resolve, top_matches


def _declaration(name, type_name, file_id="Beans.java", **kwargs):
    return Declaration(
        name=name,
        type=type_name,
        kind=DeclarationKind.ANNOTATED_TYPE,
        location=SourceLocation(file_id=file_id, line=kwargs.pop("line", 0)),
        annotation=kwargs.pop("annotation", "@Service"),
        **kwargs,
    )


def _use_site(type_name, **kwargs):
    return UseSite(
        requested_type=type_name,
        mechanism=Mechanism.MEMBER,
        location=SourceLocation(file_id="Client.java", line=3),
        **kwargs,
    )


def _index(*declarations):
    index = BeanIndex()
    index.add_file("Beans.java", list(declarations), [])
    return index


def test_single_type_match_scores_70():
    index = _index(_declaration("userService", "com.example.UserService"))

    candidates = resolve(_use_site("UserService"), index)

    assert len(candidates) == 1
    assert candidates[0].declaration.name == "userService"
    assert candidates[0].score == 70
    assert candidates[0].reason is MatchReason.TYPE_MATCH


def test_single_primary_wins_with_80():
    index = _index(
        _declaration("alipay", "Pay"),
        _declaration("wechat", "Pay", is_primary=True),
    )

    candidates = resolve(_use_site("Pay"), index)

    assert len(candidates) == 1
    assert candidates[0].declaration.name == "wechat"
    assert candidates[0].score == 80


def test_two_primaries_fall_back_to_all_type_matches():
    index = _index(
        _declaration("b", "Pay", is_primary=True),
        _declaration("a", "Pay", is_primary=True),
    )

    candidates = resolve(_use_site("Pay"), index)

    assert [c.declaration.name for c in candidates] == ["a", "b"]
    assert all(c.score == 70 for c in candidates)


def test_qualifier_wins_over_unique_type_match():
    index = _index(_declaration("main", "DataSource", qualifiers=["primary"]))

    candidates = resolve(_use_site("DataSource", qualifier="primary"), index)

    assert len(candidates) == 1
    assert candidates[0].score == 100
    assert candidates[0].reason is MatchReason.EXACT_QUALIFIER


def test_qualifier_selects_among_type_matches():
    index = _index(
        _declaration("fast", "Pay", qualifiers=["fast"]),
        _declaration("slow", "Pay", qualifiers=["slow"], is_primary=True),
    )

    candidates = resolve(_use_site("Pay", qualifier="fast"), index)

    assert [c.declaration.name for c in candidates] == ["fast"]


def test_qualifier_requires_type_compatibility():
    index = _index(_declaration("cache", "CacheManager", qualifiers=["fast"]))

    candidates = resolve(_use_site("Pay", qualifier="fast"), index)

    assert candidates == []


def test_qualifier_takes_precedence_over_explicit_name():
    index = _index(
        _declaration("fast", "Pay", qualifiers=["fast"]),
        _declaration("slow", "Pay"),
    )

    with_name = resolve(_use_site("Pay", qualifier="fast", explicit_name="slow"), index)
    without_name = resolve(_use_site("Pay", qualifier="fast"), index)

    assert with_name == without_name
    assert [c.declaration.name for c in with_name] == ["fast"]


def test_unmatched_qualifier_never_consults_name():
    index = _index(
        _declaration("alipay", "Pay"),
        _declaration("wechat", "Pay"),
    )

    with_name = resolve(_use_site("Pay", qualifier="missing", explicit_name="wechat"), index)
    without_name = resolve(_use_site("Pay", qualifier="missing"), index)

    assert with_name == without_name
    assert all(c.reason is MatchReason.TYPE_MATCH for c in with_name)


def test_explicit_name_scores_90():
    index = _index(
        _declaration("mainClock", "Clock"),
        _declaration("backupClock", "Clock"),
    )

    candidates = resolve(_use_site("Clock", explicit_name="backupClock"), index)

    assert len(candidates) == 1
    assert candidates[0].declaration.name == "backupClock"
    assert candidates[0].score == 90


def test_explicit_name_with_incompatible_type_falls_back_to_type():
    index = _index(
        _declaration("clock", "Clock"),
        _declaration("tracer", "Tracer"),
    )

    candidates = resolve(_use_site("Clock", explicit_name="tracer"), index)

    assert [c.declaration.name for c in candidates] == ["clock"]
    assert candidates[0].score == 70


def test_no_declaration_found():
    assert resolve(_use_site("Missing"), BeanIndex()) == []


def test_subtype_matching():
    index = _index(
        _declaration("alipay", "com.example.AliPay", implemented_types=["Pay"]),
        _declaration("payFacade", "com.example.Pay"),
    )

    candidates = resolve(_use_site("Pay"), index)

    assert [(c.declaration.name, c.score) for c in candidates] == [("payFacade", 70), ("alipay", 60)]


def test_subtype_matching_can_be_disabled():
    index = _index(_declaration("alipay", "com.example.AliPay", implemented_types=["Pay"]))

    candidates = BeanResolver(subtype_matching=False).resolve(_use_site("Pay"), index)

    assert candidates == []


def test_primary_subtype_wins():
    index = _index(
        _declaration("alipay", "AliPay", implemented_types=["Pay"], is_primary=True),
        _declaration("wechat", "WechatPay", implemented_types=["Pay"]),
    )

    candidates = resolve(_use_site("Pay"), index)

    assert [(c.declaration.name, c.score) for c in candidates] == [("alipay", 80)]


def test_is_compatible():
    resolver = BeanResolver()
    declaration = _declaration("alipay", "com.example.AliPay", implemented_types=["Pay"])

    assert resolver.is_compatible(declaration, "AliPay")
    assert resolver.is_compatible(declaration, "Pay")
    assert not BeanResolver(subtype_matching=False).is_compatible(declaration, "Pay")


def test_rank_orders_by_score_then_name():
    candidates = [
        create_candidate(_declaration("zeta", "Pay"), MatchReason.TYPE_MATCH),
        create_candidate(_declaration("alpha", "Pay"), MatchReason.SUBTYPE_MATCH),
        create_candidate(_declaration("beta", "Pay"), MatchReason.TYPE_MATCH),
    ]

    ranked = rank(candidates)

    assert [c.declaration.name for c in ranked] == ["beta", "zeta", "alpha"]


def test_top_matches():
    candidates = [
        create_candidate(_declaration("a", "Pay"), MatchReason.SUBTYPE_MATCH),
        create_candidate(_declaration("b", "Pay"), MatchReason.TYPE_MATCH),
        create_candidate(_declaration("c", "Pay"), MatchReason.TYPE_MATCH),
    ]

    assert [c.declaration.name for c in top_matches(candidates)] == ["b", "c"]
    assert top_matches([]) == []


def test_candidate_display():
    declaration = _declaration(
        "wechat",
        "com.example.pay.WechatPay",
        line=11,
        is_primary=True,
        qualifiers=["mobile"],
        scope="prototype",
    )

    candidate = create_candidate(declaration, MatchReason.PRIMARY)

    assert candidate.display_label == "@Service WechatPay"
    assert candidate.display_description == "com.example.pay"
    assert candidate.display_detail == (
        "@Service • wechat • @Primary • @Qualifier(mobile) • scope: prototype • Beans.java:12"
    )


def test_resolve_reads_a_single_index_generation():
    index = BeanIndex()
    index.add_file("F.java", [_declaration("pay", "com.x.Pay", file_id="F.java")], [])
    replacement = _declaration("payImpl", "com.x.PayImpl", file_id="F.java", implemented_types=["com.x.Pay"])
    original_by_type = IndexView.by_type

    def by_type_then_write(view, type_name):
        result = original_by_type(view, type_name)
        # A writer commits between the type lookup and the subtype lookup
        index.add_file("F.java", [replacement], [])
        return result

    with patch.object(IndexView, "by_type", by_type_then_write):
        candidates = resolve(_use_site("Pay"), index)

    assert [(c.declaration.name, c.score) for c in candidates] == [("pay", 70)]
    assert [(c.declaration.name, c.score) for c in resolve(_use_site("Pay"), index)] == [("payImpl", 60)]
