"""
Rolling in-memory log of autonomous decisions.

Decisions are inferred by diffing each drone against its state from the
previous tick. The log keeps the newest entries first and drops the oldest
once capacity is reached.
"""

import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Sequence

from .drone_state import DroneState, Target
from .swarm_types import DecisionType, DecisionPriority, DroneRole, DroneStatus, ThreatLevel


# flavor lines for occasional role chatter
ROLE_MESSAGES: Dict[DroneRole, List[str]] = {
    DroneRole.SCOUT: [
        "Scanning sector → No new contacts",
        "Adjusting patrol pattern → Optimizing coverage",
        "Terrain analysis → Updating navigation mesh",
    ],
    DroneRole.RELAY: [
        "Signal strength optimal → Maintaining position",
        "Rebalancing mesh → Centering between nodes",
        "Bandwidth allocation → Prioritizing tactical data",
    ],
    DroneRole.TRACKER: [
        "Target bearing updated → Adjusting intercept vector",
        "Predictive tracking → Calculating target trajectory",
        "Lock maintained → Target designated",
    ],
    DroneRole.INTERCEPTOR: [
        "Combat ready → Awaiting engagement orders",
        "Threat assessment → Calculating approach vector",
        "Weapons check → Systems nominal",
    ],
}


@dataclass(frozen=True)
class Decision:
    id: str
    drone_id: str
    drone_name: str
    type: DecisionType
    message: str
    timestamp: float
    priority: DecisionPriority


class DecisionLog:
    def __init__(self, capacity: int = 50, chatter_probability: float = 0.01,
                 rng: Optional[random.Random] = None):
        # entries are stored newest first
        self._entries: Deque[Decision] = deque(maxlen=capacity)
        self.chatter_probability = chatter_probability
        self._rng = rng if rng is not None else random.Random()

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> List[Decision]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def record(
        self,
        previous: Sequence[DroneState],
        current: Sequence[DroneState],
        now: float,
        previous_targets: Sequence[Target] = (),
        current_targets: Sequence[Target] = (),
    ) -> List[Decision]:
        # diff the two rosters, append what changed, return the new entries
        prev_by_id = {d.id: d for d in previous}
        new: List[Decision] = []

        for drone in current:
            before = prev_by_id.get(drone.id)
            if before is None:
                continue
            new.extend(self._drone_decisions(before, drone, now))

        new.extend(self._tracking_decisions(previous_targets, current_targets, current, now))

        # appendleft keeps the newest first; within one tick keep emission order
        for decision in reversed(new):
            self._entries.appendleft(decision)
        return new

    def _make(self, drone: DroneState, key: str, kind: DecisionType, message: str,
              now: float, priority: DecisionPriority) -> Decision:
        return Decision(
            id=f"{drone.id}-{key}-{now:.3f}",
            drone_id=drone.id,
            drone_name=drone.display_name,
            type=kind,
            message=message,
            timestamp=now,
            priority=priority,
        )

    def _drone_decisions(self, before: DroneState, drone: DroneState, now: float) -> List[Decision]:
        out: List[Decision] = []

        if drone.in_jamming_zone and not before.in_jamming_zone:
            out.append(self._make(drone, "jam", DecisionType.EVASION,
                                  "Jamming detected → Initiating evasive maneuvers",
                                  now, DecisionPriority.HIGH))
        elif before.in_jamming_zone and not drone.in_jamming_zone:
            out.append(self._make(drone, "clear", DecisionType.NAVIGATION,
                                  "Jamming zone cleared → Resuming normal operations",
                                  now, DecisionPriority.MEDIUM))

        if drone.gps_available != before.gps_available:
            if drone.gps_available:
                out.append(self._make(drone, "gps", DecisionType.NAVIGATION,
                                      "GPS acquired → Updating position lock",
                                      now, DecisionPriority.LOW))
            else:
                out.append(self._make(drone, "gps", DecisionType.NAVIGATION,
                                      "GPS denied → Switching to inertial navigation",
                                      now, DecisionPriority.HIGH))

        if drone.threat_level != before.threat_level and drone.threat_level != ThreatLevel.NONE:
            severe = drone.threat_level in (ThreatLevel.HIGH, ThreatLevel.CRITICAL)
            out.append(self._make(drone, "threat", DecisionType.THREAT,
                                  f"Threat level: {drone.threat_level.value.upper()} → Adjusting posture",
                                  now, DecisionPriority.CRITICAL if severe else DecisionPriority.MEDIUM))

        peers_now = len(drone.connected_peers)
        peers_before = len(before.connected_peers)
        if peers_now > peers_before:
            out.append(self._make(drone, "mesh-up", DecisionType.COMMUNICATION,
                                  f"New peer connected → Mesh expanded to {peers_now} nodes",
                                  now, DecisionPriority.LOW))
        elif peers_now < peers_before:
            out.append(self._make(drone, "mesh-down", DecisionType.COMMUNICATION,
                                  f"Peer lost → Rerouting through {peers_now} remaining nodes",
                                  now, DecisionPriority.MEDIUM))

        if drone.status == DroneStatus.ACTIVE and self._rng.random() < self.chatter_probability:
            messages = ROLE_MESSAGES[drone.role]
            out.append(self._make(drone, "role", DecisionType.ROLE,
                                  self._rng.choice(messages), now, DecisionPriority.LOW))

        return out

    def _tracking_decisions(self, previous_targets: Sequence[Target], current_targets: Sequence[Target],
                            drones: Sequence[DroneState], now: float) -> List[Decision]:
        was_tracked = {t.id: set(t.tracked_by) for t in previous_targets}
        by_id = {d.id: d for d in drones}
        out: List[Decision] = []

        for target in current_targets:
            if target.id not in was_tracked:
                continue
            for drone_id in target.tracked_by:
                if drone_id in was_tracked[target.id] or drone_id not in by_id:
                    continue
                out.append(self._make(by_id[drone_id], f"track-{target.id}", DecisionType.TRACKING,
                                      f"{target.type.value.capitalize()} contact acquired → Tracking {target.id[:4].upper()}",
                                      now, DecisionPriority.MEDIUM))
        return out
