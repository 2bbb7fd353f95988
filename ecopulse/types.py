from enum import Enum

class DeviceType(Enum):
    CHARGER = "charger"
    LIGHTS = "lights"

class ViolationType(Enum):
    CHARGER_DURATION = "chargerDuration"
    LIGHTS_DAYTIME = "lightsDaytime"

class UserRole(Enum):
    STUDENT = "student"
    PROFESSOR = "professor"


# Violation rule that watches each device
DEVICE_VIOLATIONS = {
    DeviceType.CHARGER: ViolationType.CHARGER_DURATION,
    DeviceType.LIGHTS: ViolationType.LIGHTS_DAYTIME,
}
