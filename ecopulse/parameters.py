import os
import logging
from typing import Dict, Optional

import yaml

# Configure logging
logger = logging.getLogger("Parameters")

class EcoParameters:
    """
    Tunable parameters for the broadcast loop, rule engine and point awards.
    Values are clamped to each parameter's valid range.
    """

    # Default parameter values
    DEFAULTS = {
        # Timers
        'broadcast_interval': {
            'value': 5.0,
            'min': 0.5,
            'max': 300.0,
            'unit': 's',
            'description': 'Seconds between campus data broadcasts',
            'category': 'timers'
        },
        'rule_scan_interval': {
            'value': 2.0,
            'min': 0.5,
            'max': 300.0,
            'unit': 's',
            'description': 'Seconds between student rule scans',
            'category': 'timers'
        },

        # Rules
        'charger_max_on_minutes': {
            'value': 3.0,
            'min': 0.1,
            'max': 1440.0,
            'unit': 'min',
            'description': 'Charger on-time before a duration violation is flagged',
            'category': 'rules'
        },
        'daytime_start_hour': {
            'value': 6,
            'min': 0,
            'max': 23,
            'unit': 'h',
            'description': 'First hour of the day when lights count as a violation',
            'category': 'rules'
        },
        'daytime_end_hour': {
            'value': 18,
            'min': 1,
            'max': 24,
            'unit': 'h',
            'description': 'Hour at which lights stop counting as a violation',
            'category': 'rules'
        },

        # Eco points
        'quick_action_minutes': {
            'value': 2.0,
            'min': 0.0,
            'max': 60.0,
            'unit': 'min',
            'description': 'Window after a violation in which the bonus is awarded',
            'category': 'points'
        },
        'quick_action_points': {
            'value': 10,
            'min': 0,
            'max': 1000,
            'unit': 'pts',
            'description': 'Points for turning a device off within the quick action window',
            'category': 'points'
        },
        'base_points': {
            'value': 5,
            'min': 0,
            'max': 1000,
            'unit': 'pts',
            'description': 'Points for turning a device off after the quick action window',
            'category': 'points'
        },
    }

    DAYTIME_KEYS = ('daytime_start_hour', 'daytime_end_hour')

    def __init__(self, overrides: Optional[Dict[str, float]] = None):
        self._params: Dict[str, float] = {}
        self._reset_to_defaults()
        if overrides:
            self.import_params(overrides)

    @classmethod
    def from_env(cls, config_path: Optional[str] = None) -> 'EcoParameters':
        """
        Build parameters from defaults, then an optional YAML file, then
        environment variables named after the upper-cased key.
        """
        params = cls()
        path = config_path or os.environ.get("ECO_PULSE_CONFIG")
        if path:
            params.load_yaml(path)

        from_env = {}
        for key in cls.DEFAULTS:
            raw = os.environ.get(key.upper())
            if raw is None:
                continue
            try:
                from_env[key] = float(raw)
            except ValueError:
                logger.warning(f"Ignoring non-numeric value for {key.upper()}: {raw!r}")
        params.import_params(from_env)
        return params

    def load_yaml(self, path: str) -> int:
        """Load parameter values from a YAML mapping. Returns the number applied."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config from {path}: {e}")
            return 0

        if not isinstance(data, dict):
            logger.error(f"Config file {path} must contain a mapping, got {type(data).__name__}")
            return 0

        count = self.import_params(data)
        logger.info(f"Loaded {count} parameter(s) from {path}")
        return count

    def _reset_to_defaults(self):
        """Reset all parameters to default values."""
        for key, spec in self.DEFAULTS.items():
            self._params[key] = spec['value']

    def get(self, key: str) -> float:
        """Get a parameter value."""
        return self._params.get(key, self.DEFAULTS.get(key, {}).get('value', 0.0))

    def _coerce(self, key: str, value) -> Optional[float]:
        """Validate and clamp a value for `key`, or None if it cannot be used."""
        if key not in self.DEFAULTS:
            logger.warning(f"Unknown parameter '{key}' ignored")
            return None
        spec = self.DEFAULTS[key]
        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid value for '{key}': {value!r}")
            return None
        # Clamp to valid range
        value = max(spec['min'], min(spec['max'], value))
        if isinstance(spec['value'], int):
            value = int(value)
        return value

    def set(self, key: str, value: float) -> bool:
        """Set a parameter value with validation."""
        if key in self.DAYTIME_KEYS:
            start, end = self.daytime_hours
            if key == 'daytime_start_hour':
                return self.set_daytime_window(value, end)
            return self.set_daytime_window(start, value)

        value = self._coerce(key, value)
        if value is None:
            return False
        self._params[key] = value
        logger.debug(f"Parameter '{key}' set to {value}")
        return True

    def set_daytime_window(self, start, end) -> bool:
        """Set both daytime hours; an empty or inverted window is rejected."""
        start = self._coerce('daytime_start_hour', start)
        end = self._coerce('daytime_end_hour', end)
        if start is None or end is None:
            return False
        if start >= end:
            logger.warning(f"Daytime window {start}..{end} ignored: start hour must be before end hour")
            return False
        self._params['daytime_start_hour'] = start
        self._params['daytime_end_hour'] = end
        logger.debug(f"Daytime window set to {start}..{end}")
        return True

    def get_all(self) -> Dict[str, Dict]:
        """Get all parameters with their current values and metadata."""
        result = {}
        for key, spec in self.DEFAULTS.items():
            result[key] = {
                'value': self._params.get(key, spec['value']),
                'default': spec['value'],
                'min': spec['min'],
                'max': spec['max'],
                'unit': spec['unit'],
                'description': spec['description'],
                'category': spec['category']
            }
        return result

    def import_params(self, params: Dict[str, float]) -> int:
        """Import parameter values from a mapping."""
        count = 0
        for key, value in params.items():
            if key in self.DAYTIME_KEYS:
                continue
            if self.set(key, value):
                count += 1

        # The daytime hours are validated as a pair
        window = [key for key in self.DAYTIME_KEYS if key in params]
        if window:
            start, end = self.daytime_hours
            if self.set_daytime_window(params.get('daytime_start_hour', start),
                                       params.get('daytime_end_hour', end)):
                count += len(window)
        return count

    # Convenience accessors used by the rule engine and point awards

    @property
    def broadcast_interval(self) -> float:
        return self.get('broadcast_interval')

    @property
    def rule_scan_interval(self) -> float:
        return self.get('rule_scan_interval')

    @property
    def charger_max_on_minutes(self) -> float:
        return self.get('charger_max_on_minutes')

    @property
    def daytime_hours(self):
        return int(self.get('daytime_start_hour')), int(self.get('daytime_end_hour'))

    @property
    def quick_action_minutes(self) -> float:
        return self.get('quick_action_minutes')

    @property
    def quick_action_points(self) -> int:
        return int(self.get('quick_action_points'))

    @property
    def base_points(self) -> int:
        return int(self.get('base_points'))
