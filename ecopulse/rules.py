"""
Server-side rule checks over all student sessions.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from interfaces import Clock
from .parameters import EcoParameters
from .points import minutes_between
from .sessions import SessionStore, StudentSession
from .types import DeviceType, ViolationType

logger = logging.getLogger("RuleEngine")

VIOLATION_MESSAGES = {
    ViolationType.CHARGER_DURATION: "⚠️ Charger has been on too long - turn it off to earn eco points",
    ViolationType.LIGHTS_DAYTIME: "⚠️ Lights are on during daytime - turn them off to earn eco points",
}


@dataclass
class RuleViolation:
    """A violation newly raised by a scan."""
    sid: str
    user_id: str
    violation_type: ViolationType
    triggered_at: datetime

    def to_notification(self) -> Dict:
        return {
            'type': 'violation',
            'violation': self.violation_type.value,
            'message': VIOLATION_MESSAGES[self.violation_type],
            'timestamp': self.triggered_at.isoformat(),
        }


class RuleEngine:
    """
    Flags device-usage violations on a fixed interval.

    - Charger duration: charger on for longer than `charger_max_on_minutes`.
    - Lights daytime: lights on while the local hour is in the daytime window.

    A flag that is already raised is left alone so its trigger time is kept.
    """

    def __init__(self, store: SessionStore, params: EcoParameters, clock: Clock = datetime.now):
        self._store = store
        self._params = params
        self._clock = clock

    def is_daytime(self, now: datetime) -> bool:
        start, end = self._params.daytime_hours
        return start <= now.hour < end

    def check_session(self, session: StudentSession, now: datetime) -> List[ViolationType]:
        """Apply both rules to one session, returning the violations raised.

        Also starts a fresh daily point total once the calendar day changes.
        """
        raised = []
        session.roll_over_day(now.date())

        charger_since = session.turned_on_at(DeviceType.CHARGER)
        if session.charger_on and charger_since:
            duration = minutes_between(charger_since, now)
            if duration > self._params.charger_max_on_minutes and not session.charger_duration_violation:
                session.flag_violation(ViolationType.CHARGER_DURATION, now)
                raised.append(ViolationType.CHARGER_DURATION)

        if session.lights_on and session.turned_on_at(DeviceType.LIGHTS):
            if self.is_daytime(now) and not session.lights_daytime_violation:
                session.flag_violation(ViolationType.LIGHTS_DAYTIME, now)
                raised.append(ViolationType.LIGHTS_DAYTIME)

        return raised

    def scan(self, now: Optional[datetime] = None) -> List[RuleViolation]:
        """Scan every session once."""
        now = now or self._clock()
        violations = []
        with self._store.lock:
            for sid, session in self._store.items():
                for violation_type in self.check_session(session, now):
                    logger.info(f"[RULE_VIOLATION] {session.user_id} - {violation_type.value} flagged by server")
                    violations.append(RuleViolation(sid, session.user_id, violation_type, now))
        return violations
