"""
Tunable parameters for the swarm simulation.

Every constant the engine uses lives on SwarmConfig so tests and hosts can
build variants without touching module globals.
"""

import os
from dataclasses import dataclass
from typing import Tuple


@dataclass
class SwarmConfig:
    # ─── map ────────────────────────────────────────────────
    map_width: float = 800.0
    map_height: float = 600.0
    map_margin: float = 20.0           # drones and targets stay this far from the edge

    # ─── scenario ───────────────────────────────────────────
    drone_count: int = 8
    live_drone_id: str = "PROXY-DRONE-01"

    # ─── mesh ───────────────────────────────────────────────
    mesh_range: float = 150.0
    jam_penalty: float = 0.3           # strength multiplier when both ends are jammed
    link_active_threshold: float = 0.5

    # ─── behavior ───────────────────────────────────────────
    threat_range: float = 200.0
    arrival_tolerance: float = 5.0
    cruise_speed: float = 1.0
    interceptor_speed: float = 2.0
    keyboard_speed: float = 3.0
    patrol_center: Tuple[float, float] = (400.0, 300.0)
    patrol_radii: Tuple[float, float] = (200.0, 150.0)
    patrol_period_s: float = 5.0       # time divisor of the patrol phase
    escape_distance: float = 50.0

    # ─── consumables ────────────────────────────────────────
    battery_drain: float = 0.001       # percent per tick
    signal_decay: float = 0.01
    signal_floor: float = 0.1
    signal_recovery: float = 0.005

    # ─── driver ─────────────────────────────────────────────
    frame_interval_s: float = 0.016    # ~60 ticks per second ceiling
    mission_progress_rate: float = 2.0 # percent per elapsed second
    decision_log_size: int = 50
    role_chatter_probability: float = 0.01

    # ─── external channels ──────────────────────────────────
    ws_url: str = "ws://localhost:8081"
    live_timeout_s: float = 5.0        # no message for this long means disconnected
    reconnect_delay_s: float = 2.0
    ai_base_url: str = ""              # empty string uses the client default
    ai_model: str = "gpt-4o-mini"

    @classmethod
    def from_env(cls, **overrides) -> "SwarmConfig":
        # pick up I/O endpoints from the environment, explicit overrides win
        env = {}
        if os.environ.get("SWARM_WS_URL"):
            env["ws_url"] = os.environ["SWARM_WS_URL"]
        if os.environ.get("SWARM_AI_BASE_URL"):
            env["ai_base_url"] = os.environ["SWARM_AI_BASE_URL"]
        if os.environ.get("SWARM_AI_MODEL"):
            env["ai_model"] = os.environ["SWARM_AI_MODEL"]
        env.update(overrides)
        cfg = cls(**env)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.map_width <= 2 * self.map_margin or self.map_height <= 2 * self.map_margin:
            raise ValueError("Map must be larger than twice the margin")
        if self.drone_count < 1:
            raise ValueError("drone_count must be at least 1")
        if self.mesh_range <= 0:
            raise ValueError("mesh_range must be positive")
        if self.frame_interval_s <= 0:
            raise ValueError("frame_interval_s must be positive")

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        # (min_x, min_y, max_x, max_y) of the drivable area
        return (
            self.map_margin,
            self.map_margin,
            self.map_width - self.map_margin,
            self.map_height - self.map_margin,
        )
