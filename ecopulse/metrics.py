"""
Campus metrics generator.
Produces bounded-random sustainability readings for the dashboard broadcast.
"""
import random
import logging
import threading
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple

from interfaces import MetricsSource

logger = logging.getLogger("CampusMetrics")

# Inclusive integer bounds per metric
METRIC_BOUNDS: Dict[str, Tuple[int, int]] = {
    'energyUsage': (2000, 6999),      # kWh
    'solarGeneration': (1000, 3999),  # kWh
    'wasteLevel': (20, 99),           # %
    'carbonScore': (60, 99),          # score
}


@dataclass
class CampusReading:
    energyUsage: int
    solarGeneration: int
    wasteLevel: int
    carbonScore: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def generate_campus_data(rng: Optional[random.Random] = None) -> CampusReading:
    """Draw one reading with every metric inside METRIC_BOUNDS."""
    rng = rng or random
    values = {name: rng.randint(lo, hi) for name, (lo, hi) in METRIC_BOUNDS.items()}
    return CampusReading(**values)


class CampusDataGenerator(MetricsSource):
    """Metrics source that remembers the last reading it produced."""

    def __init__(self, seed: Optional[str] = None):
        self._rng = random.Random(seed) if seed else random.Random()
        self._latest: Optional[CampusReading] = None
        self._lock = threading.Lock()

    def generate(self) -> Dict[str, int]:
        with self._lock:
            self._latest = generate_campus_data(self._rng)
            return self._latest.to_dict()

    @property
    def latest(self) -> Optional[Dict[str, int]]:
        with self._lock:
            return self._latest.to_dict() if self._latest else None
