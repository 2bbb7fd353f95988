__version__ = "0.1.0"

from .types import DeviceType, ViolationType, UserRole, DEVICE_VIOLATIONS
from .parameters import EcoParameters
from .metrics import CampusReading, CampusDataGenerator, METRIC_BOUNDS, generate_campus_data
from .sessions import StudentSession, SessionStore
from .points import PointAward, compute_award
from .rules import RuleEngine, RuleViolation
from .tracker import OutboundMessage, StudentTracker

__all__ = [
    'DeviceType', 'ViolationType', 'UserRole', 'DEVICE_VIOLATIONS',
    'EcoParameters',
    'CampusReading', 'CampusDataGenerator', 'METRIC_BOUNDS', 'generate_campus_data',
    'StudentSession', 'SessionStore',
    'PointAward', 'compute_award',
    'RuleEngine', 'RuleViolation',
    'OutboundMessage', 'StudentTracker',
]
