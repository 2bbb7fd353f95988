"""
Student event handling.

Applies the named client events (login, device toggles, violation reports,
disconnect) to the session store and returns the messages to send back to
the originating connection. The transport layer only routes.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from interfaces import Clock
from .parameters import EcoParameters
from .points import compute_award
from .sessions import SessionStore, StudentSession
from .types import DEVICE_VIOLATIONS, DeviceType, UserRole, ViolationType

logger = logging.getLogger("StudentTracker")

DEVICE_LABELS = {
    DeviceType.CHARGER: "⚡ Charger",
    DeviceType.LIGHTS: "💡 Lights",
}


@dataclass
class OutboundMessage:
    """A named event addressed to the connection that caused it."""
    event: str
    data: Any


class StudentTracker:
    """Session lifecycle and eco point bookkeeping for connected students."""

    def __init__(self, store: SessionStore, params: EcoParameters, clock: Clock = datetime.now):
        self._store = store
        self._params = params
        self._clock = clock

    @property
    def store(self) -> SessionStore:
        return self._store

    def login(self, sid: str, username: Optional[str], role: Optional[str]) -> List[OutboundMessage]:
        """Register a student session for this connection."""
        if role != UserRole.STUDENT.value:
            logger.warning(f"[SECURITY] Non-student attempt to register as student: {username}")
            return []
        if not username or not str(username).strip():
            logger.warning(f"[SECURITY] Student login without a username rejected: {sid}")
            return []

        username = str(username).strip()
        self._store.create(sid, username, now=self._clock())
        logger.info(f"[STUDENT] {username} logged in - Session: {sid}")
        return [OutboundMessage('studentLoginAck', {
            'message': 'Logged in successfully',
            'sessionId': sid,
        })]

    def toggle_device(self, sid: str, device: DeviceType, on: bool) -> Optional[List[OutboundMessage]]:
        """
        Switch a device on or off.

        Turning a device off while its violation is flagged awards eco points.
        Returns None when the connection has no session.
        """
        with self._store.lock:
            session = self._store.get(sid)
            if session is None:
                logger.warning(f"[ERROR] {device.value} toggle received but no session found: {sid}")
                return None

            now = self._clock()
            on = bool(on)
            messages = []
            session.roll_over_day(now.date())
            session.set_device(device, on, now)
            state = "ON" if on else "OFF"
            logger.info(f"[STUDENT] {session.user_id} - {device.value} turned {state}")

            if not on:
                award = self._award_points(session, device, now)
                if award:
                    messages.append(award)

            messages.append(OutboundMessage('notification', {
                'type': 'device',
                'message': f"{DEVICE_LABELS[device]} turned {state}",
                'timestamp': now.isoformat(),
            }))
            messages.append(OutboundMessage('studentStateUpdate', session.to_dict()))
            return messages

    def _award_points(self, session: StudentSession, device: DeviceType,
                      now: datetime) -> Optional[OutboundMessage]:
        violation = DEVICE_VIOLATIONS[device]
        triggered_at = session.violation_triggered_at(violation)
        if not session.is_violating(violation) or triggered_at is None:
            return None

        award = compute_award(triggered_at, now, self._params)
        session.add_points(award.points, now.date())
        session.clear_violation(violation)
        logger.info(f"[ECO_POINTS] {session.user_id} earned +{award.points} for turning off {device.value}")
        return OutboundMessage(
            'ecoPointsUpdate',
            award.to_dict(session.eco_points_total, session.eco_points_today)
        )

    def report_violation(self, sid: str, violation_type: Any, triggered: bool) -> Optional[List[OutboundMessage]]:
        """Record a violation detected by the client. Returns None when the connection has no session."""
        with self._store.lock:
            session = self._store.get(sid)
            if session is None:
                logger.warning(f"[ERROR] Rule violation received but no session found: {sid}")
                return None

            try:
                violation = ViolationType(violation_type)
            except ValueError:
                violation = None
                logger.warning(f"[RULE_VIOLATION] {session.user_id} - unknown violation type {violation_type!r} ignored")

            if violation is not None:
                if triggered:
                    session.flag_violation(violation, self._clock())
                    logger.info(f"[RULE_VIOLATION] {session.user_id} - {violation.value} violation triggered")
                else:
                    session.clear_violation(violation)
                    logger.info(f"[RULE_RESOLVED] {session.user_id} - {violation.value} violation resolved")

            return [OutboundMessage('ruleViolationAck', {
                'type': violation_type,
                'triggered': triggered,
            })]

    def disconnect(self, sid: str) -> Optional[StudentSession]:
        """Drop the session for a closed connection."""
        session = self._store.remove(sid)
        if session:
            logger.info(f"[DISCONNECT] Student {session.user_id} disconnected - removing session")
        else:
            logger.info(f"[DISCONNECT] Client disconnected: {sid}")
        return session

    def state(self, sid: str) -> Optional[Dict]:
        with self._store.lock:
            session = self._store.get(sid)
            if session is None:
                return None
            session.roll_over_day(self._clock().date())
            return session.to_dict()

    def summaries(self) -> List[Dict]:
        """Connected students, for the professor view."""
        today = self._clock().date()
        with self._store.lock:
            students = []
            for sid, session in self._store.items():
                session.roll_over_day(today)
                students.append(dict(session.to_dict(), sessionId=sid))
            return students
