import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from .types import DeviceType, ViolationType

# Configure logging
logger = logging.getLogger("SessionStore")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class StudentSession:
    """Per-connection device and eco point state for one student."""
    user_id: str
    charger_on: bool = False
    charger_turned_on_at: Optional[datetime] = None
    lights_on: bool = False
    lights_turned_on_at: Optional[datetime] = None
    eco_points_total: int = 0
    eco_points_today: int = 0
    charger_duration_violation: bool = False
    charger_violation_triggered_at: Optional[datetime] = None
    lights_daytime_violation: bool = False
    lights_violation_triggered_at: Optional[datetime] = None
    connected_at: datetime = field(default_factory=datetime.now)
    points_date: date = field(default_factory=date.today)

    # --- device accessors ---

    def turned_on_at(self, device: DeviceType) -> Optional[datetime]:
        return getattr(self, f"{device.value}_turned_on_at")

    def set_device(self, device: DeviceType, on: bool, now: datetime) -> None:
        """Switch a device, keeping the on-timestamp in step with the flag."""
        setattr(self, f"{device.value}_on", on)
        setattr(self, f"{device.value}_turned_on_at", now if on else None)

    # --- violation accessors ---

    _VIOLATION_FIELDS = {
        ViolationType.CHARGER_DURATION: ('charger_duration_violation', 'charger_violation_triggered_at'),
        ViolationType.LIGHTS_DAYTIME: ('lights_daytime_violation', 'lights_violation_triggered_at'),
    }

    def is_violating(self, violation: ViolationType) -> bool:
        flag, _ = self._VIOLATION_FIELDS[violation]
        return getattr(self, flag)

    def violation_triggered_at(self, violation: ViolationType) -> Optional[datetime]:
        _, stamp = self._VIOLATION_FIELDS[violation]
        return getattr(self, stamp)

    def flag_violation(self, violation: ViolationType, now: datetime) -> None:
        flag, stamp = self._VIOLATION_FIELDS[violation]
        setattr(self, flag, True)
        setattr(self, stamp, now)

    def clear_violation(self, violation: ViolationType) -> None:
        flag, stamp = self._VIOLATION_FIELDS[violation]
        setattr(self, flag, False)
        setattr(self, stamp, None)

    def roll_over_day(self, today: date) -> bool:
        """Start a fresh daily total when the calendar day has changed."""
        if self.points_date == today:
            return False
        self.eco_points_today = 0
        self.points_date = today
        return True

    def add_points(self, points: int, today: date) -> None:
        """Add to lifetime and daily totals."""
        self.roll_over_day(today)
        self.eco_points_total += points
        self.eco_points_today += points

    def to_dict(self) -> Dict:
        """Wire representation sent with studentStateUpdate."""
        return {
            'userId': self.user_id,
            'chargerOn': self.charger_on,
            'chargerTurnedOnAt': _iso(self.charger_turned_on_at),
            'lightsOn': self.lights_on,
            'lightsTurnedOnAt': _iso(self.lights_turned_on_at),
            'ecoPointsTotal': self.eco_points_total,
            'ecoPointsToday': self.eco_points_today,
            'chargerDurationViolation': self.charger_duration_violation,
            'chargerViolationTriggeredAt': _iso(self.charger_violation_triggered_at),
            'lightsDaytimeViolation': self.lights_daytime_violation,
            'lightsViolationTriggeredAt': _iso(self.lights_violation_triggered_at),
            'connectedAt': _iso(self.connected_at),
        }


class SessionStore:
    """
    In-memory map of connection id -> StudentSession.
    Owned by the connection layer; callers that mutate a session hold `lock`.
    """

    def __init__(self):
        self._sessions: Dict[str, StudentSession] = {}
        self.lock = threading.RLock()

    def create(self, sid: str, user_id: str, now: Optional[datetime] = None) -> StudentSession:
        """Create (or replace) the session for a connection."""
        now = now or datetime.now()
        session = StudentSession(user_id=user_id, connected_at=now, points_date=now.date())
        with self.lock:
            if sid in self._sessions:
                logger.info(f"Replacing existing session for {sid}")
            self._sessions[sid] = session
        return session

    def get(self, sid: str) -> Optional[StudentSession]:
        with self.lock:
            return self._sessions.get(sid)

    def remove(self, sid: str) -> Optional[StudentSession]:
        """Remove and return the session for a connection, if any."""
        with self.lock:
            return self._sessions.pop(sid, None)

    def items(self) -> List[Tuple[str, StudentSession]]:
        """Snapshot of (sid, session) pairs."""
        with self.lock:
            return list(self._sessions.items())

    def __contains__(self, sid: str) -> bool:
        with self.lock:
            return sid in self._sessions

    def __len__(self) -> int:
        with self.lock:
            return len(self._sessions)
