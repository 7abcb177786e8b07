"""
Metrics Aggregator for the Market Engine

Per-market summary statistics:
- Sums of units and beds over properties
- Means of occupancy, rent and prelease over properties that record them
- University counts and enrollment, kept apart from property figures

Missing data yields None rather than an exception.
"""

import math
from typing import Iterable, List, Optional

from .models import AggregateMetrics, Entity, EntityKind


def _mean(values: List[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty list."""
    if not values:
        return None
    return math.fsum(values) / len(values)


def compute_metrics(members: Iterable[Entity]) -> AggregateMetrics:
    """
    Compute aggregate metrics for a set of market members.

    Subjects always carry rent/occupancy/prelease; competitors may not, and
    only those that do are averaged. Universities never contribute to
    property figures. Members are read, never modified.

    Args:
        members: Entities of a market (any mix of kinds)

    Returns:
        AggregateMetrics; averages are None when no member carries the field
    """
    total_units = 0
    total_beds = 0
    subject_count = 0
    competitor_count = 0
    university_count = 0
    total_enrollment = 0

    occupancy: List[float] = []
    rents: List[float] = []
    prelease: List[float] = []

    for member in members:
        if member.kind == EntityKind.UNIVERSITY:
            university_count += 1
            total_enrollment += member.total_enrollment
            continue

        if member.kind == EntityKind.SUBJECT:
            subject_count += 1
        elif member.kind == EntityKind.COMPETITOR:
            competitor_count += 1

        total_units += member.total_units
        total_beds += member.total_beds

        if member.occupancy_rate is not None:
            occupancy.append(member.occupancy_rate)
        if member.average_rent is not None:
            rents.append(member.average_rent)
        if member.prelease_rate is not None:
            prelease.append(member.prelease_rate)

    return AggregateMetrics(
        total_units=total_units,
        property_count=subject_count + competitor_count,
        average_occupancy=_mean(occupancy),
        average_rent=_mean(rents),
        total_beds=total_beds,
        average_prelease=_mean(prelease),
        subject_count=subject_count,
        competitor_count=competitor_count,
        university_count=university_count,
        total_enrollment=total_enrollment,
    )
