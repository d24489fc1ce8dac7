"""Bean resolution: rank the declarations that can satisfy a use-site.

The cascade follows the container's own precedence:

1. explicit qualifier (score 100), which wins even over a unique type match;
2. explicit bean name (score 90), never consulted when a qualifier is set;
3. type matching, where a single ``@Primary`` bean wins (score 80) and
   otherwise every exact type match (70) and subtype match (60) is returned
   for the caller to choose from.

An empty result is a normal outcome meaning "no declaration found".
"""

from beanjump.index import BeanIndex, IndexView, types_match
from beanjump.models import Candidate, Declaration, MatchReason, UseSite, simple_name


class BeanResolver:
    """Resolve use-sites against a BeanIndex.

    Attributes:
        subtype_matching: When False, declarations are matched by their own
            type only and the subtype step never produces candidates.
    """

    def __init__(self, subtype_matching: bool = True):
        self.subtype_matching = subtype_matching

    def resolve(self, use_site: UseSite, index: BeanIndex) -> list[Candidate]:
        """Return candidates ordered by descending score, then bean name.

        Every lookup goes through one view, so the result reflects a single
        generation of the index even while writers are active.
        """
        view = index.view()
        if use_site.qualifier:
            matches = [
                d for d in self._type_pool(use_site.requested_type, view)
                if use_site.qualifier in d.qualifiers
            ]
            if matches:
                return rank([create_candidate(d, MatchReason.EXACT_QUALIFIER) for d in matches])
        elif use_site.explicit_name:
            declaration = view.by_name(use_site.explicit_name)
            if declaration is not None and self.is_compatible(declaration, use_site.requested_type):
                return [create_candidate(declaration, MatchReason.EXACT_NAME)]

        exact = view.by_type(use_site.requested_type)
        subtypes = self._subtypes(use_site.requested_type, view, exclude=exact)

        primaries = [d for d in exact + subtypes if d.is_primary]
        if len(primaries) == 1:
            return [create_candidate(primaries[0], MatchReason.PRIMARY)]

        candidates = [create_candidate(d, MatchReason.TYPE_MATCH) for d in exact]
        candidates.extend(create_candidate(d, MatchReason.SUBTYPE_MATCH) for d in subtypes)
        return rank(candidates)

    def is_compatible(self, declaration: Declaration, requested_type: str) -> bool:
        if types_match(declaration.type, requested_type):
            return True
        if not self.subtype_matching:
            return False
        return any(types_match(t, requested_type) for t in declaration.implemented_types)

    def _type_pool(self, requested_type: str, view: IndexView) -> list[Declaration]:
        exact = view.by_type(requested_type)
        return exact + self._subtypes(requested_type, view, exclude=exact)

    def _subtypes(self, requested_type: str, view: IndexView, exclude: list[Declaration]) -> list[Declaration]:
        if not self.subtype_matching:
            return []
        seen = {id(d) for d in exclude}
        return [d for d in view.by_supertype(requested_type) if id(d) not in seen]


def resolve(use_site: UseSite, index: BeanIndex, subtype_matching: bool = True) -> list[Candidate]:
    """Resolve a use-site with a default BeanResolver."""
    return BeanResolver(subtype_matching=subtype_matching).resolve(use_site, index)


def rank(candidates: list[Candidate]) -> list[Candidate]:
    """Sort by score descending; ties broken by bean name ascending."""
    return sorted(candidates, key=lambda c: (-c.score, c.declaration.name))


def top_matches(candidates: list[Candidate]) -> list[Candidate]:
    """Only the candidates sharing the highest score."""
    if not candidates:
        return []
    ranked = rank(candidates)
    top_score = ranked[0].score
    return [c for c in ranked if c.score == top_score]


def create_candidate(declaration: Declaration, reason: MatchReason) -> Candidate:
    return Candidate(
        declaration=declaration,
        score=reason.score,
        reason=reason,
        display_label=f"{declaration.annotation} {simple_name(declaration.type)}",
        display_description=declaration.package,
        display_detail=_format_detail(declaration),
    )


def _format_detail(declaration: Declaration) -> str:
    parts = [declaration.annotation, declaration.name]
    if declaration.is_primary:
        parts.append("@Primary")
    if declaration.qualifiers:
        parts.append(f"@Qualifier({', '.join(declaration.qualifiers)})")
    if declaration.scope and declaration.scope != "singleton":
        parts.append(f"scope: {declaration.scope}")
    location = declaration.location
    parts.append(f"{location.file_id}:{location.line + 1}")
    return " • ".join(parts)
