import random
from types import SimpleNamespace

from openai import OpenAIError

from swarm_sim.ai_assistant import (
    SwarmAssistant,
    parse_command,
    parse_optimizations,
    parse_threat_analysis,
    swarm_snapshot,
    threat_snapshot,
)
from swarm_sim.config import SwarmConfig
from swarm_sim.scenario import create_initial_state
from swarm_sim.swarm_types import DroneStatus, ThreatLevel
import pytest


class _FakeCompletions:
    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _make_assistant(reply: str = "", error: Exception = None):
    completions = _FakeCompletions(reply, error)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return SwarmAssistant(SwarmConfig(ai_model="test-model"), client=client), completions


def _make_state():
    return create_initial_state(SwarmConfig(), random.Random(11))


def test_threat_snapshot_counts():
    state = _make_state()
    state.drones[1].status = DroneStatus.JAMMED
    state.drones[2].threat_level = ThreatLevel.HIGH
    state.drones[3].threat_level = ThreatLevel.CRITICAL

    snap = threat_snapshot(state)

    assert snap["activeDrones"] == 7
    assert snap["jammedDrones"] == 1
    assert snap["highThreatDrones"] == 2
    assert snap["targets"] == [{"type": "hostile", "tracked": False}, {"type": "unknown", "tracked": False}]


def test_swarm_snapshot_groups_and_averages_unknown_battery_as_zero():
    state = _make_state()
    for d in state.drones[1:]:
        d.battery = 80.0
    state.drones[4].connected_peers = ["x"]

    snap = swarm_snapshot(state)

    assert snap["totalDrones"] == 8
    assert snap["byRole"] == {"scouts": 2, "relays": 2, "trackers": 2, "interceptors": 2}
    assert snap["byStatus"] == {"active": 8, "jammed": 0, "offline": 0}
    assert snap["avgBattery"] == pytest.approx(80.0 * 7 / 8)
    assert snap["connectedDrones"] == 1


def test_parse_threat_analysis_lines():
    text = (
        "- THREAT LEVEL: HIGH\n"
        "\n"
        "- ASSESSMENT: Two hostiles near the relay: mesh at risk.\n"
        "- RECOMMENDED ACTION: Pull interceptors forward."
    )
    result = parse_threat_analysis(text)

    assert result.threat_level == "HIGH"
    assert result.assessment == "Two hostiles near the relay: mesh at risk."
    assert result.recommended_action == "Pull interceptors forward."


def test_parse_threat_analysis_defaults_to_unknown():
    result = parse_threat_analysis("no structure here")
    assert result.threat_level == "UNKNOWN"
    assert result.assessment == ""


def test_parse_command_extracts_embedded_json():
    text = 'Sure! {"action": "patrol", "target": "Scouts", "parameters": {"sector": "north"}} done'
    cmd = parse_command(text)

    assert cmd.action == "PATROL"
    assert cmd.target == "scouts"
    assert cmd.parameters == {"sector": "north"}


def test_parse_command_accepts_known_drone_id():
    cmd = parse_command('{"action": "RECALL", "target": "PROXY-DRONE-01"}', ["PROXY-DRONE-01"])
    assert cmd.target == "PROXY-DRONE-01"
    assert cmd.parameters == {}


@pytest.mark.parametrize("text, message", [
    ("nothing", "no JSON object"),
    ('{"action": "DANCE", "target": "all"}', "Unknown command action"),
    ('{"action": "EVADE", "target": "ghost"}', "Unknown command target"),
    ('{"action": "EVADE"}', "Unknown command target"),
])
def test_parse_command_rejects_out_of_vocabulary(text, message):
    with pytest.raises(ValueError, match=message):
        parse_command(text, ["PROXY-DRONE-01"])


def test_parse_optimizations_truncates_to_three():
    text = (
        "Here you go:\n"
        '[{"priority": "high", "suggestion": "Spread relays", "impact": "Better mesh"},'
        ' {"priority": "MEDIUM", "suggestion": "Rotate scouts", "impact": "Coverage"},'
        ' {"priority": "LOW", "suggestion": "Conserve battery", "impact": "Endurance"},'
        ' {"priority": "LOW", "suggestion": "Extra", "impact": "None"}]'
    )
    out = parse_optimizations(text)

    assert [s.suggestion for s in out] == ["Spread relays", "Rotate scouts", "Conserve battery"]
    assert out[0].priority == "HIGH"


def test_parse_optimizations_without_array_is_empty():
    assert parse_optimizations("I cannot help with that") == []


def test_analyze_threat_sends_snapshot_and_parses_reply():
    assistant, completions = _make_assistant("- THREAT LEVEL: LOW\n- ASSESSMENT: Quiet.\n- RECOMMENDED ACTION: Hold.")

    result = assistant.analyze_threat(_make_state())

    assert result.threat_level == "LOW"
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"][0]["role"] == "system"
    assert "activeDrones" in call["messages"][1]["content"]


def test_process_command_returns_structured_command():
    assistant, _ = _make_assistant('{"action": "FORM_PERIMETER", "target": "all", "parameters": {}}')
    cmd = assistant.process_command("Form defensive perimeter", _make_state())
    assert cmd.action == "FORM_PERIMETER"
    assert cmd.target == "all"


def test_process_command_with_bad_reply_returns_none():
    assistant, _ = _make_assistant("I don't understand")
    assert assistant.process_command("do a barrel roll") is None


def test_blank_command_is_not_sent():
    assistant, completions = _make_assistant("{}")
    assert assistant.process_command("   ") is None
    assert completions.calls == []


def test_transport_failures_surface_as_empty_results():
    assistant, _ = _make_assistant(error=OpenAIError("gateway down"))
    state = _make_state()

    assert assistant.analyze_threat(state) is None
    assert assistant.process_command("recall all") is None
    assert assistant.get_optimizations(state) == []


def test_garbled_optimization_json_returns_empty_list():
    assistant, _ = _make_assistant("[not, valid, json]")
    assert assistant.get_optimizations(_make_state()) == []
