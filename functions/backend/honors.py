"""
Honors tiers derived from a profile's point total.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HonorsTier:
    name: str
    points: int


BEGINNER = HonorsTier("Beginner", 0)
TIERS = (
    HonorsTier("Bronze", 100),
    HonorsTier("Silver", 250),
    HonorsTier("Gold", 500),
    HonorsTier("Platinum", 1000),
)


@dataclass(frozen=True)
class TierProgress:
    points: int
    current: HonorsTier
    next: HonorsTier
    progress_percent: float

    @property
    def is_max_level(self) -> bool:
        return self.current == TIERS[-1]

    def as_dict(self) -> dict:
        return {
            "points": self.points,
            "current_tier": self.current.name,
            "current_tier_points": self.current.points,
            "next_tier": self.next.name,
            "next_tier_points": self.next.points,
            "progress_percent": self.progress_percent,
        }


def compute_tier_progress(points: int) -> TierProgress:
    """
    Returns the tier `points` falls in and the progress toward the next one.

    A total exactly equal to a threshold belongs to that threshold's tier.
    Past the last tier the next tier is "Max Level" and progress is 100%.
    """
    points = max(int(points or 0), 0)

    current = BEGINNER
    next_tier = TIERS[0]
    for index in range(len(TIERS) - 1, -1, -1):
        if points >= TIERS[index].points:
            current = TIERS[index]
            if index + 1 < len(TIERS):
                next_tier = TIERS[index + 1]
            else:
                next_tier = HonorsTier("Max Level", current.points)
            break

    span = next_tier.points - current.points
    if span > 0:
        progress = (points - current.points) / span * 100
    else:
        progress = 100.0
    return TierProgress(
        points=points,
        current=current,
        next=next_tier,
        progress_percent=round(min(progress, 100.0), 2),
    )
