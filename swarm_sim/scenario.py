"""
Initial world for a run: the live drone plus seven simulated drones, two
jamming zones and two targets. Every call draws fresh ids and positions.
"""

import random
import string
from typing import List, Optional

from .config import SwarmConfig
from .drone_state import DroneState, JammingZone, Target
from .swarm_state import SimulationState
from .swarm_types import DroneRole, TargetType


_ROLE_CYCLE = [DroneRole.SCOUT, DroneRole.RELAY, DroneRole.TRACKER, DroneRole.INTERCEPTOR]
_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(rng: random.Random, length: int = 9) -> str:
    # short lowercase base-36 id
    return "".join(rng.choice(_ID_ALPHABET) for _ in range(length))


def create_initial_drones(config: SwarmConfig, rng: random.Random) -> List[DroneState]:
    cx, cy = config.patrol_center

    # the live device starts at the map center with unknown battery
    drones = [
        DroneState(
            id=config.live_drone_id,
            position=(cx, cy),
            role=DroneRole.SCOUT,
            battery=None,
            heading=0.0,
            altitude=100.0,
            is_live_device=True,
        )
    ]

    # simulated drones launch from a box on the west side of the map
    for i in range(1, config.drone_count):
        position = (100.0 + rng.random() * 200.0, 200.0 + rng.random() * 200.0)
        drones.append(
            DroneState(
                id=generate_id(rng),
                position=position,
                role=_ROLE_CYCLE[i % len(_ROLE_CYCLE)],
                battery=85.0 + rng.random() * 15.0,
                signal_strength=0.9 + rng.random() * 0.1,
                heading=rng.random() * 360.0,
                altitude=100.0 + rng.random() * 50.0,
            )
        )

    return drones


def create_initial_jamming_zones(config: SwarmConfig, rng: random.Random) -> List[JammingZone]:
    return [
        JammingZone(id=generate_id(rng), center=(550.0, 300.0), radius=120.0, intensity=0.8),
        JammingZone(id=generate_id(rng), center=(400.0, 450.0), radius=80.0, intensity=0.6),
    ]


def create_initial_targets(config: SwarmConfig, rng: random.Random) -> List[Target]:
    return [
        Target(id=generate_id(rng), position=(650.0, 200.0), velocity=(-0.5, 0.3), type=TargetType.HOSTILE),
        Target(id=generate_id(rng), position=(700.0, 400.0), velocity=(-0.3, -0.2), type=TargetType.UNKNOWN),
    ]


def create_initial_state(config: SwarmConfig, rng: Optional[random.Random] = None) -> SimulationState:
    # fresh planning-phase world; nothing is running yet
    rng = rng if rng is not None else random.Random()
    return SimulationState(
        drones=create_initial_drones(config, rng),
        jamming_zones=create_initial_jamming_zones(config, rng),
        targets=create_initial_targets(config, rng),
    )
