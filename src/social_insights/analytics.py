"""Summary statistics over a dataset."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .models import AnalyticsSummary, NormalizedRecord, ProfileEngagement

TOP_PROFILE_LIMIT = 5


def posts_per_network(records: Iterable[NormalizedRecord]) -> Dict[str, int]:
    """Count posts per network, keyed in order of first appearance."""
    counts: Dict[str, int] = {}
    for record in records:
        counts[record.network] = counts.get(record.network, 0) + 1
    return counts


def top_profiles(
    records: Iterable[NormalizedRecord],
    limit: int = TOP_PROFILE_LIMIT,
) -> List[ProfileEngagement]:
    """Rank profiles by summed engagements.

    Profiles with equal totals keep the order in which they first appear.
    """
    totals: Dict[str, int] = {}
    for record in records:
        totals[record.profile] = totals.get(record.profile, 0) + record.engagements

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [ProfileEngagement(profile=profile, engagements=total) for profile, total in ranked[:limit]]


def summarize(records: Iterable[NormalizedRecord]) -> AnalyticsSummary:
    """Compute an AnalyticsSummary from scratch."""
    items = list(records)
    return AnalyticsSummary(
        total_records=len(items),
        total_engagements=sum(record.engagements for record in items),
        posts_per_network=posts_per_network(items),
        top_profiles=top_profiles(items),
    )
