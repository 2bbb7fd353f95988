"""
Flask + Socket.IO server for the Eco Pulse dashboard.
Carries student device events in, and campus broadcasts, state updates,
notifications and eco point awards out.
"""
import os
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, render_template, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO, emit

from interfaces import EventPublisher, MetricsSource, RealtimeServer
from ecopulse import DeviceType, EcoParameters, RuleEngine, RuleViolation, StudentTracker, __version__

logger = logging.getLogger("WebGUI")

# Incoming toggle event -> (device, payload key)
TOGGLE_EVENTS = {
    'chargerToggle': (DeviceType.CHARGER, 'chargerOn'),
    'lightsToggle': (DeviceType.LIGHTS, 'lightsOn'),
}


def _payload(event: str, data: Any, *required: str) -> Optional[Dict]:
    """Return the event payload as a dict, or None if it is malformed or lacks a required key."""
    if not isinstance(data, dict):
        logger.warning(f"[ERROR] Malformed {event} payload from {request.sid}: {data!r}")
        return None
    missing = [key for key in required if key not in data]
    if missing:
        logger.warning(f"[ERROR] {event} payload from {request.sid} is missing {missing}: {data!r}")
        return None
    return data


def _send(messages) -> None:
    for message in messages or []:
        emit(message.event, message.data)


class SocketIOPublisher(EventPublisher):
    """Publishes events through a Flask-SocketIO server."""

    def __init__(self, socketio: SocketIO):
        self._socketio = socketio

    def publish(self, event: str, data: Any, to: Optional[str] = None) -> None:
        if to is None:
            self._socketio.emit(event, data)
        else:
            self._socketio.emit(event, data, to=to)


def create_app(tracker: StudentTracker,
               metrics: MetricsSource,
               params: EcoParameters) -> Tuple[Flask, SocketIO]:
    """
    Factory function to create the Flask app and its Socket.IO server.
    The session store lives inside `tracker`; nothing here keeps global state.
    """
    app = Flask(__name__,
                template_folder='templates',
                static_folder='static')

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")
    app.config['tracker'] = tracker
    app.config['metrics'] = metrics
    app.config['params'] = params

    CORS(app)
    socketio = SocketIO(app, cors_allowed_origins="*", async_mode="threading")

    # --- Web Routes ---

    @app.route('/')
    def index():
        """Render the dashboard."""
        return render_template('index.html')

    # --- REST API Routes ---

    @app.route('/api/health')
    def get_health():
        return jsonify({
            'status': 'ok',
            'version': __version__,
            'sessions': len(app.config['tracker'].store),
        })

    @app.route('/api/campus')
    def get_campus():
        """Latest campus reading, generating one if nothing has been broadcast yet."""
        source = app.config['metrics']
        return jsonify(source.latest or source.generate())

    @app.route('/api/students')
    def get_students():
        """Connected students with their devices, violations and points."""
        students = app.config['tracker'].summaries()
        return jsonify({'count': len(students), 'students': students})

    @app.route('/api/config')
    def get_config():
        return jsonify(app.config['params'].get_all())

    # --- Socket.IO events ---

    @socketio.on('connect')
    def on_connect():
        logger.info(f"[CONNECTION] Client connected: {request.sid}")

    @socketio.on('studentLogin')
    def on_student_login(data):
        data = _payload('studentLogin', data)
        if data is None:
            return
        _send(tracker.login(request.sid, data.get('username'), data.get('userRole')))

    def make_toggle_handler(event: str, device: DeviceType, key: str):
        def on_toggle(data):
            data = _payload(event, data, key)
            if data is None:
                return
            _send(tracker.toggle_device(request.sid, device, bool(data.get(key))))
        on_toggle.__name__ = f"on_{event}"
        return on_toggle

    for event, (device, key) in TOGGLE_EVENTS.items():
        socketio.on_event(event, make_toggle_handler(event, device, key))

    @socketio.on('ruleViolation')
    def on_rule_violation(data):
        data = _payload('ruleViolation', data, 'type', 'triggered')
        if data is None:
            return
        _send(tracker.report_violation(request.sid, data.get('type'), bool(data.get('triggered'))))

    @socketio.on('disconnect')
    def on_disconnect(*args):
        tracker.disconnect(request.sid)

    return app, socketio


class WebServer(RealtimeServer):
    """
    Web server wrapper: serves HTTP + Socket.IO and runs the campus broadcast
    and rule-scan loops as background tasks.
    """

    def __init__(self,
                 tracker: StudentTracker,
                 rules: RuleEngine,
                 metrics: MetricsSource,
                 params: EcoParameters,
                 host: str = "0.0.0.0",
                 port: int = 5000):
        self._tracker = tracker
        self._rules = rules
        self._metrics = metrics
        self._params = params
        self._host = host
        self._port = port
        self._app, self._socketio = create_app(tracker, metrics, params)
        self._publisher = SocketIOPublisher(self._socketio)
        self._running = False
        self._thread = None
        self._server = None

    @property
    def app(self) -> Flask:
        return self._app

    @property
    def socketio(self) -> SocketIO:
        return self._socketio

    def broadcast_tick(self) -> Dict:
        """Publish one campus reading to every client."""
        data = self._metrics.generate()
        self._publisher.publish('campusData', data)
        logger.debug("[CAMPUS] Emitted campus data to all connected clients")
        return data

    def scan_tick(self) -> List[RuleViolation]:
        """Run the rule engine once and alert the students it flagged."""
        violations = self._rules.scan()
        for violation in violations:
            self._publisher.publish('notification', violation.to_notification(), to=violation.sid)
            state = self._tracker.state(violation.sid)
            if state:
                self._publisher.publish('studentStateUpdate', state, to=violation.sid)
        return violations

    def _broadcast_loop(self) -> None:
        logger.info(f"Starting campus broadcast. Interval: {self._params.broadcast_interval}s")
        while self._running:
            try:
                self.broadcast_tick()
            except Exception as e:
                logger.error(f"Error in campus broadcast loop: {e}", exc_info=True)
            self._socketio.sleep(self._params.broadcast_interval)

    def _scan_loop(self) -> None:
        logger.info(f"Starting student rule scan. Interval: {self._params.rule_scan_interval}s")
        while self._running:
            try:
                self.scan_tick()
            except Exception as e:
                logger.error(f"Error in student rule scan loop: {e}", exc_info=True)
            self._socketio.sleep(self._params.rule_scan_interval)

    def start(self) -> None:
        """Start the web server in a background thread, plus the periodic loops."""
        self._running = True
        self._socketio.start_background_task(self._broadcast_loop)
        self._socketio.start_background_task(self._scan_loop)

        self._thread = threading.Thread(
            target=self._run_server,
            daemon=True
        )
        self._thread.start()
        logger.info(f"Eco Pulse server listening on http://{self._host}:{self._port}")

    def _run_server(self) -> None:
        """Run the Flask app (with the Socket.IO middleware) under werkzeug."""
        from werkzeug.serving import make_server
        self._server = make_server(self._host, self._port, self._app, threaded=True)
        self._server.serve_forever()

    def stop(self) -> None:
        """Stop the loops and the web server."""
        self._running = False
        if self._server is not None:
            self._server.shutdown()
        logger.info("Web server stopped")
