from ecopulse import DeviceType


def _events(messages):
    return [m.event for m in messages]


def _by_event(messages, event):
    return next(m.data for m in messages if m.event == event)


def test_student_login_creates_session(tracker, store):
    messages = tracker.login("sid-1", "alice", "student")
    assert _events(messages) == ['studentLoginAck']
    assert messages[0].data == {'message': 'Logged in successfully', 'sessionId': 'sid-1'}
    assert store.get("sid-1").user_id == "alice"


def test_non_students_and_blank_names_are_rejected(tracker, store):
    assert tracker.login("sid-1", "prof", "professor") == []
    assert tracker.login("sid-2", "   ", "student") == []
    assert tracker.login("sid-3", None, "student") == []
    assert len(store) == 0


def test_toggle_sets_and_clears_timestamp(tracker, store, clock):
    tracker.login("sid-1", "alice", "student")

    messages = tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    assert _events(messages) == ['notification', 'studentStateUpdate']
    assert _by_event(messages, 'notification')['message'] == "⚡ Charger turned ON"
    state = _by_event(messages, 'studentStateUpdate')
    assert state['chargerOn'] is True
    assert state['chargerTurnedOnAt'] == clock().isoformat()

    clock.advance(minutes=1)
    messages = tracker.toggle_device("sid-1", DeviceType.CHARGER, False)
    state = _by_event(messages, 'studentStateUpdate')
    assert state['chargerOn'] is False
    assert state['chargerTurnedOnAt'] is None
    assert store.get("sid-1").eco_points_total == 0


def test_quick_correction_awards_ten(tracker, store, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.LIGHTS, True)
    tracker.report_violation("sid-1", "lightsDaytime", True)

    clock.advance(minutes=2)
    messages = tracker.toggle_device("sid-1", DeviceType.LIGHTS, False)
    assert _events(messages) == ['ecoPointsUpdate', 'notification', 'studentStateUpdate']
    award = _by_event(messages, 'ecoPointsUpdate')
    assert award['pointsAwarded'] == 10
    assert award['totalPoints'] == 10
    assert award['todayPoints'] == 10

    session = store.get("sid-1")
    assert not session.lights_daytime_violation
    assert session.lights_violation_triggered_at is None


def test_slow_correction_awards_five(tracker, store, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    tracker.report_violation("sid-1", "chargerDuration", True)

    clock.advance(minutes=2, seconds=1)
    award = _by_event(tracker.toggle_device("sid-1", DeviceType.CHARGER, False), 'ecoPointsUpdate')
    assert award['pointsAwarded'] == 5
    assert store.get("sid-1").eco_points_total == 5


def test_points_awarded_once_per_violation(tracker, store, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    tracker.report_violation("sid-1", "chargerDuration", True)
    tracker.toggle_device("sid-1", DeviceType.CHARGER, False)

    messages = tracker.toggle_device("sid-1", DeviceType.CHARGER, False)
    assert 'ecoPointsUpdate' not in _events(messages)
    assert store.get("sid-1").eco_points_total == 10


def test_server_flagged_violation_awards_points(tracker, rules, store, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    clock.advance(minutes=5)
    assert len(rules.scan()) == 1

    clock.advance(minutes=1)
    award = _by_event(tracker.toggle_device("sid-1", DeviceType.CHARGER, False), 'ecoPointsUpdate')
    assert award['pointsAwarded'] == 10


def test_resolved_violation_awards_nothing(tracker, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.LIGHTS, True)
    tracker.report_violation("sid-1", "lightsDaytime", True)
    messages = tracker.report_violation("sid-1", "lightsDaytime", False)
    assert messages[0].data == {'type': 'lightsDaytime', 'triggered': False}

    messages = tracker.toggle_device("sid-1", DeviceType.LIGHTS, False)
    assert 'ecoPointsUpdate' not in _events(messages)


def test_unknown_violation_type_is_acknowledged_only(tracker, store):
    tracker.login("sid-1", "alice", "student")
    messages = tracker.report_violation("sid-1", "tapRunning", True)
    assert _events(messages) == ['ruleViolationAck']
    session = store.get("sid-1")
    assert not session.charger_duration_violation
    assert not session.lights_daytime_violation


def test_disconnect_removes_session_and_later_events_are_noops(tracker, store):
    tracker.login("sid-1", "alice", "student")
    removed = tracker.disconnect("sid-1")
    assert removed.user_id == "alice"
    assert "sid-1" not in store

    assert tracker.toggle_device("sid-1", DeviceType.CHARGER, True) is None
    assert tracker.report_violation("sid-1", "chargerDuration", True) is None
    assert tracker.disconnect("sid-1") is None
    assert tracker.state("sid-1") is None
    assert len(store) == 0


def test_daily_total_resets_next_day(tracker, store, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    tracker.report_violation("sid-1", "chargerDuration", True)
    tracker.toggle_device("sid-1", DeviceType.CHARGER, False)

    clock.advance(days=1)
    tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    tracker.report_violation("sid-1", "chargerDuration", True)
    award = _by_event(tracker.toggle_device("sid-1", DeviceType.CHARGER, False), 'ecoPointsUpdate')
    assert award['totalPoints'] == 20
    assert award['todayPoints'] == 10


def test_summaries(tracker):
    tracker.login("sid-1", "alice", "student")
    tracker.login("sid-2", "bob", "student")
    summaries = {s['sessionId']: s['userId'] for s in tracker.summaries()}
    assert summaries == {"sid-1": "alice", "sid-2": "bob"}


def test_rendered_state_shows_fresh_daily_total_after_midnight(tracker, clock):
    tracker.login("sid-1", "alice", "student")
    tracker.toggle_device("sid-1", DeviceType.CHARGER, True)
    tracker.report_violation("sid-1", "chargerDuration", True)
    tracker.toggle_device("sid-1", DeviceType.CHARGER, False)
    assert tracker.state("sid-1")['ecoPointsToday'] == 10

    clock.advance(days=1)
    assert tracker.state("sid-1")['ecoPointsToday'] == 0
    assert tracker.summaries()[0]['ecoPointsToday'] == 0
    assert tracker.summaries()[0]['ecoPointsTotal'] == 10
