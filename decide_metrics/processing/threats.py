# decide_metrics/processing/threats.py
"""Threat assessment and prioritisation."""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Sequence

from ..config import SituationalAwarenessConfig
from ..config.constants import SceneConstants
from ..core.statistics import clamp01
from ..domain.events import ThreatAssessment
from ..domain.samples import TargetCategory, Vec3

logger = logging.getLogger(__name__)

BASE_THREAT = {
    TargetCategory.HOSTILE: SceneConstants.HOSTILE_THREAT,
    TargetCategory.UNKNOWN: SceneConstants.UNKNOWN_THREAT,
    TargetCategory.FRIENDLY: SceneConstants.FRIENDLY_THREAT,
}


def threat_level(category: TargetCategory, distance: float, detection_range: float) -> float:
    """Base level by category, scaled down to half at ``detection_range``."""
    modifier = clamp01(1.0 - distance / detection_range)
    return BASE_THREAT[category] * (0.5 + 0.5 * modifier)


def prioritization_score(threats: Sequence[ThreatAssessment], top_n: int = 3) -> float:
    """
    Percentage of the ``top_n`` highest threats that are currently tracked.
    Ties keep insertion order. 100 when there are no threats.
    """
    if not threats:
        return 100.0
    ranked = sorted(threats, key=lambda t: t.threat_level, reverse=True)
    top = ranked[: min(top_n, len(ranked))]
    tracked = sum(1 for t in top if t.tracked)
    return tracked * 100.0 / len(top)


class ThreatTracker:
    """Keyed ThreatAssessments with visibility timeout."""

    def __init__(self, cfg: SituationalAwarenessConfig | None = None) -> None:
        self.cfg = cfg or SituationalAwarenessConfig()
        self._threats: Dict[int, ThreatAssessment] = {}

    def reset(self) -> None:
        self._threats.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._threats

    def __len__(self) -> int:
        return len(self._threats)

    def __iter__(self) -> Iterator[ThreatAssessment]:
        return iter(list(self._threats.values()))

    def get(self, identity: int) -> ThreatAssessment | None:
        return self._threats.get(identity)

    def create(
        self, identity: int, category: TargetCategory, distance: float, direction: Vec3, now: float
    ) -> ThreatAssessment:
        threat = ThreatAssessment(
            identity=identity,
            category=category,
            threat_level=threat_level(category, distance, self.cfg.detection_range_m),
            distance=distance,
            direction=direction,
            tracked=True,
            last_seen=now,
        )
        self._threats[identity] = threat
        return threat

    def observe(self, identity: int, distance: float, direction: Vec3, now: float) -> None:
        threat = self._threats.get(identity)
        if threat is None:
            return
        threat.distance = distance
        threat.direction = direction
        threat.tracked = True
        threat.last_seen = now
        threat.threat_level = threat_level(threat.category, distance, self.cfg.detection_range_m)

    def mark_lost(self, identity: int, now: float) -> bool:
        threat = self._threats.get(identity)
        if threat is None:
            return False
        threat.tracked = False
        threat.last_seen = now
        return True

    def mark_unseen(self, identity: int) -> None:
        threat = self._threats.get(identity)
        if threat is not None:
            threat.tracked = False

    def expire(self, now: float) -> List[int]:
        """Drop threats unseen for longer than the timeout."""
        stale = [
            ident
            for ident, t in self._threats.items()
            if not t.tracked and now - t.last_seen > self.cfg.threat_timeout_s
        ]
        for ident in stale:
            del self._threats[ident]
            logger.debug("Threat %s expired", ident)
        return stale

    def remove(self, identity: int) -> None:
        self._threats.pop(identity, None)

    @property
    def active_count(self) -> int:
        return sum(1 for t in self._threats.values() if t.tracked)

    def prioritization_score(self) -> float:
        return prioritization_score(list(self._threats.values()), self.cfg.top_threat_count)

    def detection_accuracy(self) -> float:
        """Share of threats whose level matches their category, in percent."""
        if not self._threats:
            return 0.0
        correct = sum(
            1
            for t in self._threats.values()
            if (t.category is TargetCategory.HOSTILE and t.threat_level > 75.0)
            or (t.category is TargetCategory.FRIENDLY and t.threat_level < 25.0)
        )
        return correct / len(self._threats) * 100.0

    def spatial_memory_score(self, now: float) -> float:
        """Tracked share of each threat's time window (last seen plus 5 s memory)."""
        if not self._threats:
            return 100.0
        possible = 0.0
        tracked = 0.0
        for t in self._threats.values():
            span = now - (t.last_seen - self.cfg.threat_timeout_s)
            possible += span
            if t.tracked:
                tracked += span
        return tracked / possible * 100.0 if possible > 0 else 100.0
