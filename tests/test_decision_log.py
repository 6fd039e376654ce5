import random
from dataclasses import replace

from swarm_sim.decision_log import DecisionLog, ROLE_MESSAGES
from swarm_sim.drone_state import DroneState, Target
from swarm_sim.swarm_types import DecisionPriority, DecisionType, DroneRole, DroneStatus, TargetType, ThreatLevel


def _make_drone(drone_id: str = "abcd1234", role: DroneRole = DroneRole.SCOUT, **kw):
    return DroneState(id=drone_id, position=(100.0, 100.0), role=role, **kw)


def _quiet_log(capacity: int = 50):
    return DecisionLog(capacity=capacity, chatter_probability=0.0, rng=random.Random(0))


def test_entering_jamming_logs_evasion_and_gps_loss():
    log = _quiet_log()
    before = _make_drone()
    after = replace(before, in_jamming_zone=True, gps_available=False, status=DroneStatus.JAMMED)

    new = log.record([before], [after], now=10.0)

    assert [d.type for d in new] == [DecisionType.EVASION, DecisionType.NAVIGATION]
    assert new[0].priority == DecisionPriority.HIGH
    assert new[1].message == "GPS denied → Switching to inertial navigation"
    assert new[0].drone_name == "SCOUT-ABCD"


def test_leaving_jamming_and_regaining_gps():
    log = _quiet_log()
    before = _make_drone(in_jamming_zone=True, gps_available=False)
    after = replace(before, in_jamming_zone=False, gps_available=True)

    new = log.record([before], [after], now=1.0)

    assert [d.message for d in new] == [
        "Jamming zone cleared → Resuming normal operations",
        "GPS acquired → Updating position lock",
    ]
    assert new[1].priority == DecisionPriority.LOW


def test_threat_escalation_priority():
    log = _quiet_log()
    before = _make_drone()

    medium = log.record([before], [replace(before, threat_level=ThreatLevel.MEDIUM)], now=1.0)
    high = log.record([before], [replace(before, threat_level=ThreatLevel.HIGH)], now=2.0)
    calm = log.record([replace(before, threat_level=ThreatLevel.LOW)], [before], now=3.0)

    assert medium[0].priority == DecisionPriority.MEDIUM
    assert high[0].priority == DecisionPriority.CRITICAL
    assert high[0].message == "Threat level: HIGH → Adjusting posture"
    assert calm == []


def test_peer_changes_are_logged():
    log = _quiet_log()
    before = _make_drone(connected_peers=["a"])

    up = log.record([before], [replace(before, connected_peers=["a", "b"])], now=1.0)
    down = log.record([before], [replace(before, connected_peers=[])], now=2.0)

    assert up[0].message == "New peer connected → Mesh expanded to 2 nodes"
    assert down[0].message == "Peer lost → Rerouting through 0 remaining nodes"
    assert down[0].type == DecisionType.COMMUNICATION


def test_new_drones_without_history_are_skipped():
    log = _quiet_log()
    assert log.record([], [_make_drone(in_jamming_zone=True)], now=1.0) == []


def test_role_chatter_only_for_active_drones():
    log = DecisionLog(chatter_probability=1.0, rng=random.Random(5))
    relay = _make_drone(role=DroneRole.RELAY)
    offline = _make_drone("zzzz", status=DroneStatus.OFFLINE)

    new = log.record([relay, offline], [relay, offline], now=1.0)

    assert len(new) == 1
    assert new[0].type == DecisionType.ROLE
    assert new[0].message in ROLE_MESSAGES[DroneRole.RELAY]


def test_newly_tracked_target_is_logged():
    log = _quiet_log()
    tracker = _make_drone("trk1", role=DroneRole.TRACKER)
    before = Target(id="tgt9", position=(0.0, 0.0), velocity=(0.0, 0.0), type=TargetType.HOSTILE)
    after = replace(before, tracked=True, tracked_by=["trk1"])

    new = log.record([tracker], [tracker], 1.0, [before], [after])
    again = log.record([tracker], [tracker], 2.0, [after], [after])

    assert len(new) == 1
    assert new[0].type == DecisionType.TRACKING
    assert new[0].drone_id == "trk1"
    assert again == []


def test_log_is_newest_first_and_bounded():
    log = _quiet_log(capacity=3)
    before = _make_drone()
    for t in range(5):
        log.record([before], [replace(before, connected_peers=["x"] * (t + 1))], now=float(t))

    entries = log.entries()
    assert len(entries) == 3
    assert [e.timestamp for e in entries] == [4.0, 3.0, 2.0]

    log.clear()
    assert len(log) == 0
