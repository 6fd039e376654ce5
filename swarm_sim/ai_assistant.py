"""
Advisory AI channel for the swarm.

SwarmAssistant sends a snapshot-derived payload to a chat-completions model
and parses the reply into a threat assessment, a structured command, or a
list of optimization suggestions. It only reads state. Any transport or
parsing failure is logged and reported as None / [] so that it can never
disturb the simulation tick.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from openai import OpenAI, OpenAIError

from .config import SwarmConfig
from .swarm_state import SimulationState
from .swarm_types import DroneRole, DroneStatus, ThreatLevel


logger = logging.getLogger(__name__)


COMMAND_ACTIONS = ("DEPLOY", "RECALL", "PATROL", "INTERCEPT", "EVADE", "FORM_PERIMETER", "CONCENTRATE")
COMMAND_TARGETS = ("all", "scouts", "relays", "trackers", "interceptors")

THREAT_SYSTEM_PROMPT = (
    "You are a military drone swarm tactical AI. Analyze threat data and provide concise tactical assessments.\n"
    "Format your response as:\n"
    "- THREAT LEVEL: [CRITICAL/HIGH/MEDIUM/LOW]\n"
    "- ASSESSMENT: [1-2 sentences]\n"
    "- RECOMMENDED ACTION: [1 sentence]\n"
    "Keep responses under 50 words total."
)

COMMAND_SYSTEM_PROMPT = (
    "You are a drone swarm command interpreter. Convert natural language commands into structured actions.\n"
    f"Valid actions: {', '.join(COMMAND_ACTIONS)}\n"
    f"Valid targets: {', '.join(COMMAND_TARGETS)}, or specific drone IDs\n"
    'Respond ONLY with JSON: {"action": "ACTION_NAME", "target": "target", "parameters": {}}'
)

OPTIMIZATION_SYSTEM_PROMPT = (
    "You are a swarm optimization AI. Analyze swarm state and suggest tactical improvements.\n"
    "Provide exactly 3 suggestions, each under 15 words. Format as JSON array:\n"
    '[{"priority": "HIGH/MEDIUM/LOW", "suggestion": "text", "impact": "text"}]'
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass(frozen=True)
class ThreatAnalysis:
    threat_level: str
    assessment: str
    recommended_action: str


@dataclass(frozen=True)
class SwarmCommand:
    action: str
    target: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OptimizationSuggestion:
    priority: str
    suggestion: str
    impact: str


# ---- request payloads ----

def threat_snapshot(state: SimulationState) -> Dict[str, Any]:
    drones = state.drones
    return {
        "activeDrones": sum(1 for d in drones if d.status == DroneStatus.ACTIVE),
        "jammedDrones": sum(1 for d in drones if d.status == DroneStatus.JAMMED),
        "targets": [{"type": t.type.value, "tracked": t.tracked} for t in state.targets],
        "highThreatDrones": sum(
            1 for d in drones if d.threat_level in (ThreatLevel.HIGH, ThreatLevel.CRITICAL)
        ),
    }


def swarm_snapshot(state: SimulationState) -> Dict[str, Any]:
    drones = state.drones
    total = len(drones)
    return {
        "totalDrones": total,
        "byRole": {
            f"{role.value}s": sum(1 for d in drones if d.role == role) for role in DroneRole
        },
        "byStatus": {
            status.value: sum(1 for d in drones if d.status == status)
            for status in (DroneStatus.ACTIVE, DroneStatus.JAMMED, DroneStatus.OFFLINE)
        },
        # unknown battery counts as 0 here as well
        "avgBattery": sum(d.battery or 0.0 for d in drones) / total if total else 0.0,
        "connectedDrones": sum(1 for d in drones if d.connected_peers),
    }


# ---- response parsers ----

def parse_threat_analysis(text: str) -> ThreatAnalysis:
    threat_level = "UNKNOWN"
    assessment = ""
    recommended_action = ""

    for line in text.splitlines():
        if not line.strip():
            continue
        if "THREAT LEVEL:" in line:
            threat_level = line.split(":", 1)[1].strip() or "UNKNOWN"
        elif "ASSESSMENT:" in line:
            assessment = line.split(":", 1)[1].strip()
        elif "RECOMMENDED ACTION:" in line:
            recommended_action = line.split(":", 1)[1].strip()

    return ThreatAnalysis(threat_level, assessment, recommended_action)


def parse_command(text: str, drone_ids: Iterable[str] = ()) -> SwarmCommand:
    """
    Extract the first JSON object from text and validate it against the
    command vocabulary. Raises ValueError on anything unusable.
    """
    match = _JSON_OBJECT.search(text)
    if match is None:
        raise ValueError("Invalid command response: no JSON object")

    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Invalid command response: not an object")

    action = str(data.get("action", "")).upper()
    if action not in COMMAND_ACTIONS:
        raise ValueError(f"Unknown command action: {action!r}")

    target = str(data.get("target", ""))
    known_ids = set(drone_ids)
    if target.lower() in COMMAND_TARGETS:
        target = target.lower()
    elif known_ids and target not in known_ids:
        raise ValueError(f"Unknown command target: {target!r}")
    elif not target:
        raise ValueError("Command target is empty")

    parameters = data.get("parameters") or {}
    if not isinstance(parameters, dict):
        parameters = {}

    return SwarmCommand(action=action, target=target, parameters=parameters)


def parse_optimizations(text: str, limit: int = 3) -> List[OptimizationSuggestion]:
    match = _JSON_ARRAY.search(text)
    if match is None:
        return []

    data = json.loads(match.group(0))
    if not isinstance(data, list):
        return []

    out: List[OptimizationSuggestion] = []
    for item in data:
        if not isinstance(item, dict) or "suggestion" not in item:
            continue
        out.append(
            OptimizationSuggestion(
                priority=str(item.get("priority", "LOW")).upper(),
                suggestion=str(item["suggestion"]),
                impact=str(item.get("impact", "")),
            )
        )
    return out[:limit]


class SwarmAssistant:
    def __init__(self, config: Optional[SwarmConfig] = None, client: Optional[Any] = None):
        self.config = config if config is not None else SwarmConfig()

        # client may be injected (tests); otherwise build one from the environment
        # note: OpenAI() reads OPENAI_API_KEY itself
        if client is None:
            kwargs = {"base_url": self.config.ai_base_url} if self.config.ai_base_url else {}
            client = OpenAI(**kwargs)
        self.client = client

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.config.ai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def analyze_threat(self, state: SimulationState) -> Optional[ThreatAnalysis]:
        payload = threat_snapshot(state)
        try:
            text = self._complete(THREAT_SYSTEM_PROMPT, f"Analyze this threat situation: {json.dumps(payload)}")
        except OpenAIError:
            logger.warning("Threat analysis request failed", exc_info=True)
            return None
        return parse_threat_analysis(text)

    def process_command(self, command: str, state: Optional[SimulationState] = None) -> Optional[SwarmCommand]:
        if not command.strip():
            return None
        drone_ids = [d.id for d in state.drones] if state is not None else []
        try:
            text = self._complete(COMMAND_SYSTEM_PROMPT, f'Interpret this command: "{command}"')
            return parse_command(text, drone_ids)
        except OpenAIError:
            logger.warning("Command request failed", exc_info=True)
        except ValueError as exc:
            logger.warning("Could not interpret command %r: %s", command, exc)
        return None

    def get_optimizations(self, state: SimulationState) -> List[OptimizationSuggestion]:
        payload = swarm_snapshot(state)
        try:
            text = self._complete(OPTIMIZATION_SYSTEM_PROMPT, f"Optimize this swarm configuration: {json.dumps(payload)}")
            return parse_optimizations(text)
        except OpenAIError:
            logger.warning("Optimization request failed", exc_info=True)
        except ValueError as exc:
            logger.warning("Could not parse optimization suggestions: %s", exc)
        return []
