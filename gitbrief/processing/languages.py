"""
Language composition processing.

Turns GitHub's raw per-language byte counts into thresholded percentage
shares, and rolls those shares up into daily or weekly language trends.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from gitbrief.types import LanguageShare, LanguageTrend


def _share_sort_key(language: str, percentage: float):
    # Descending by percentage, ties broken by name for determinism
    return (-percentage, language)


@dataclass(frozen=True)
class NormalizedLanguages:
    """Result of normalizing one repository's language bytes."""

    shares: List[LanguageShare] = field(default_factory=list)

    @property
    def primary_language(self) -> Optional[str]:
        return self.shares[0].language if self.shares else None

    def as_tuples(self) -> List[tuple]:
        return [(s.language, s.percentage) for s in self.shares]


class LanguageNormalizer:
    """
    Converts language byte counts into percentage shares.

    percentage = 100 * bytes / total_bytes. Entries strictly below the
    threshold (in percent) are dropped. The survivors keep their share of
    the true total unless `renormalize` is set, in which case they are
    rescaled to sum to 100.

    Example:
        normalizer = LanguageNormalizer(threshold=10.0)
        result = normalizer.normalize({"Python": 800, "Rust": 150, "Shell": 50})
        result.as_tuples()     # [("Python", 80.0), ("Rust", 15.0)]
        result.primary_language  # "Python"
    """

    def __init__(self, threshold: float = 20.0, renormalize: bool = False):
        if threshold < 0:
            raise ValueError("threshold must be >= 0")
        self.threshold = threshold
        self.renormalize = renormalize

    def normalize(self, raw: Mapping[str, int]) -> NormalizedLanguages:
        counts = {lang: max(0, int(count)) for lang, count in raw.items() if lang}
        total = sum(counts.values())
        if total == 0:
            return NormalizedLanguages()

        kept: Dict[str, float] = {}
        for language, count in counts.items():
            percentage = 100.0 * count / total
            if percentage >= self.threshold:
                kept[language] = percentage

        if self.renormalize and kept:
            kept_total = sum(kept.values())
            kept = {lang: 100.0 * pct / kept_total for lang, pct in kept.items()}

        shares = [
            LanguageShare(language=lang, percentage=pct)
            for lang, pct in sorted(kept.items(), key=lambda item: _share_sort_key(*item))
        ]
        return NormalizedLanguages(shares=shares)


def normalize(raw: Mapping[str, int], threshold: float, renormalize: bool = False) -> NormalizedLanguages:
    """Functional shortcut for LanguageNormalizer(threshold).normalize(raw)."""
    return LanguageNormalizer(threshold=threshold, renormalize=renormalize).normalize(raw)


def aggregate_language_shares(
    period: date,
    share_lists: Iterable[Sequence[LanguageShare]],
) -> List[LanguageTrend]:
    """
    Roll per-snapshot language shares up into a period trend.

    Each element of share_lists is the language breakdown of one snapshot.
    A language's weight is the sum of its shares across snapshots; its
    repo_count is the number of snapshots it appears in (a repository that
    trends on several days of a week counts once per day). The weights are
    rescaled so normalized_percentage sums to 100 over the period.

    Args:
        period: The day, or the Monday of the week
        share_lists: Language shares per snapshot

    Returns:
        Trend rows sorted by normalized_percentage descending; empty if
        there is no language data
    """
    weights: Dict[str, float] = {}
    repo_counts: Dict[str, int] = {}

    for shares in share_lists:
        for share in shares:
            weights[share.language] = weights.get(share.language, 0.0) + share.percentage
            repo_counts[share.language] = repo_counts.get(share.language, 0) + 1

    total = sum(weights.values())
    if total <= 0:
        return []

    rows = [
        LanguageTrend(
            period=period,
            language=language,
            normalized_percentage=100.0 * weight / total,
            repo_count=repo_counts[language],
        )
        for language, weight in weights.items()
    ]
    rows.sort(key=lambda row: _share_sort_key(row.language, row.normalized_percentage))
    return rows


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the ISO week containing day."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)
