"""
Persona similarity scoring

Pure functions, no I/O. Set-valued categories are compared case-insensitively
and normalized by the larger of the two sets, so a persona with few
attributes cannot reach a full score by matching all of them.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..domain.models import ExpertiseLevel, MatchScore, Persona

# evidence keys, in scoring order
SET_CATEGORIES = ("interests", "projects", "themes", "channels")

_EXPERTISE_SCALE = [level.value for level in ExpertiseLevel]


@dataclass(frozen=True)
class ScoringWeights:
    """Category weights; the defaults sum to 100"""
    core_interests: float = 30.0
    projects: float = 25.0
    expertise_level: float = 15.0
    engagement_style: float = 10.0
    content_themes: float = 15.0
    channels: float = 5.0

    @property
    def total(self) -> float:
        return (
            self.core_interests
            + self.projects
            + self.expertise_level
            + self.engagement_style
            + self.content_themes
            + self.channels
        )


DEFAULT_WEIGHTS = ScoringWeights()


def _normalize(value: Optional[str]) -> str:
    return str(value).strip().lower() if value is not None else ""


def _distinct(values: Iterable[str]) -> Dict[str, str]:
    """Case-folded value -> first spelling seen, keeping input order"""
    seen: Dict[str, str] = {}
    for value in values or []:
        folded = _normalize(value)
        if folded and folded not in seen:
            seen[folded] = str(value)
    return seen


def set_overlap(values_a: Iterable[str], values_b: Iterable[str]):
    """
    Case-insensitive set intersection

    Returns:
        Tuple of (matched values in a's spelling and order, max distinct cardinality)
    """
    distinct_a = _distinct(values_a)
    distinct_b = _distinct(values_b)
    common = [spelling for folded, spelling in distinct_a.items() if folded in distinct_b]
    return common, max(len(distinct_a), len(distinct_b), 1)


def expertise_credit(level_a: Optional[str], level_b: Optional[str]) -> float:
    """1.0 on exact match, 0.5 for adjacent levels, 0.0 otherwise"""
    a, b = _normalize(level_a), _normalize(level_b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in _EXPERTISE_SCALE and b in _EXPERTISE_SCALE:
        if abs(_EXPERTISE_SCALE.index(a) - _EXPERTISE_SCALE.index(b)) == 1:
            return 0.5
    return 0.0


def empty_evidence() -> Dict[str, List[str]]:
    return {category: [] for category in SET_CATEGORIES}


def score(
    persona_a: Optional[Persona],
    persona_b: Optional[Persona],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> MatchScore:
    """
    Weighted similarity between two personas

    Args:
        persona_a: Persona of the viewing user
        persona_b: Persona of the candidate
        weights: Category weights

    Returns:
        MatchScore with score in [0, 100] rounded to 2 decimals, and the
        matched values per set category. A missing persona scores 0.
    """
    evidence = empty_evidence()
    if persona_a is None or persona_b is None:
        return MatchScore(score=0.0, evidence=evidence)

    total = 0.0
    set_categories = (
        ("interests", persona_a.core_interests, persona_b.core_interests, weights.core_interests),
        ("projects", persona_a.projects, persona_b.projects, weights.projects),
        ("themes", persona_a.content_themes, persona_b.content_themes, weights.content_themes),
        ("channels", persona_a.channels, persona_b.channels, weights.channels),
    )
    for category, values_a, values_b, weight in set_categories:
        common, cardinality = set_overlap(values_a, values_b)
        if common:
            total += len(common) / cardinality * weight
            evidence[category] = common

    total += expertise_credit(persona_a.expertise_level, persona_b.expertise_level) * weights.expertise_level

    style_a = _normalize(persona_a.engagement_style)
    if style_a and style_a == _normalize(persona_b.engagement_style):
        total += weights.engagement_style

    return MatchScore(score=round(min(100.0, max(0.0, total)), 2), evidence=evidence)
