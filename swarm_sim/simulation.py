"""
SwarmSimulation: owns the world state, exposes the host control surface
(start/pause, gps and jamming toggles, reset, metrics) and runs the fixed-step
tick that advances drones, targets and the mesh.

All mutation happens under one lock, so external writers (live telemetry,
keyboard input) merge atomically between ticks and never see torn state.
"""

import asyncio
import copy
import logging
import random
import threading
import time
from dataclasses import replace
from typing import Callable, Optional

from .behavior import update_drone
from .config import SwarmConfig
from .decision_log import DecisionLog
from .drone_state import DroneState
from .live_control import KeyboardState, LiveDroneUpdate
from .mesh import calculate_mesh_links, connected_peers
from .scenario import create_initial_state
from .swarm_state import SimulationState, SimulationMetrics
from .swarm_types import DroneStatus, MissionStatus, TargetType
from .targets import update_targets, update_tracking


logger = logging.getLogger(__name__)


class SwarmSimulation:
    def __init__(
        self,
        config: Optional[SwarmConfig] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        # config holds every tunable; validated once up front
        self.config = config if config is not None else SwarmConfig()
        self.config.validate()

        # clock is injectable so tests can pin the scout patrol phase and liveness checks
        self.clock = clock

        # rng seeds scenario generation and decision-log chatter
        self._rng = rng if rng is not None else random.Random()

        # one lock around the whole state object; the tick is the main writer
        self._lock = threading.Lock()

        self.state: SimulationState = create_initial_state(self.config, self._rng)

        # live-drone inputs
        self.keyboard = KeyboardState()
        self.device_connected = False

        self.decision_log = DecisionLog(
            capacity=self.config.decision_log_size,
            chatter_probability=self.config.role_chatter_probability,
            rng=self._rng,
        )

        # guards against two frame loops driving the same state
        self._loop_active = False

    # -------- control surface --------

    def toggle_simulation(self) -> bool:
        """
        Flip the running flag and return the new value. Entity data is untouched.

        This only changes the flag. A paused run_frame_loop() returns on its own,
        so after resuming the host must call run_frame_loop() again to get ticks.
        """
        with self._lock:
            self.state.simulation_running = not self.state.simulation_running
            running = self.state.simulation_running
        logger.info("Simulation %s", "running" if running else "paused")
        return running

    def start(self) -> None:
        # sets the running flag only; pair with run_frame_loop() to actually tick
        with self._lock:
            self.state.simulation_running = True
        logger.info("Simulation running")

    def pause(self) -> None:
        with self._lock:
            self.state.simulation_running = False
        logger.info("Simulation paused")

    def toggle_gps(self) -> bool:
        with self._lock:
            self.state.gps_enabled = not self.state.gps_enabled
            enabled = self.state.gps_enabled
        logger.info("GPS %s", "enabled" if enabled else "disabled")
        return enabled

    def toggle_jamming(self) -> bool:
        # the global flag and every zone's active flag move together
        with self._lock:
            active = not self.state.jamming_active
            self.state.jamming_active = active
            self.state.jamming_zones = [replace(z, active=active) for z in self.state.jamming_zones]
        logger.info("Jamming %s", "active" if active else "inactive")
        return active

    def reset(self) -> None:
        # fresh planning-phase world with new ids and positions
        with self._lock:
            self.state = create_initial_state(self.config, self._rng)
            self.decision_log.clear()
        logger.info("Simulation reset: %d drones, %d jamming zones, %d targets",
                    len(self.state.drones), len(self.state.jamming_zones), len(self.state.targets))

    def snapshot(self) -> SimulationState:
        # deep copy so readers on other threads cannot observe later ticks
        with self._lock:
            return copy.deepcopy(self.state)

    @property
    def live_drone(self) -> Optional[DroneState]:
        return self.state.drone_by_id(self.config.live_drone_id)

    # -------- live-drone inputs --------

    def press_key(self, key: str) -> bool:
        with self._lock:
            return self.keyboard.press(key)

    def release_key(self, key: str) -> bool:
        with self._lock:
            return self.keyboard.release(key)

    def set_device_connected(self, connected: bool) -> None:
        with self._lock:
            changed = self.device_connected != connected
            self.device_connected = connected
        if changed:
            logger.info("Live device %s", "connected" if connected else "disconnected")

    def ingest_live_update(self, update: LiveDroneUpdate) -> bool:
        """
        Merge external telemetry into the live drone.

        Each field is applied independently and absent fields keep their prior
        value. Updates for any id other than the live drone are ignored.
        Returns True when the update was applied.
        """
        if update.id != self.config.live_drone_id:
            logger.debug("Ignoring live update for unknown drone id %s", update.id)
            return False

        with self._lock:
            drone = self.state.drone_by_id(update.id)
            if drone is None or not drone.is_live_device:
                return False

            changes = {"last_live_update": self.clock(), "is_live_device": True}
            if update.position is not None:
                changes["position"] = update.position
                changes["last_known_position"] = update.position
            if update.heading is not None:
                changes["heading"] = update.heading
            if update.has_battery:
                changes["battery"] = update.battery
            if update.online is not None:
                changes["status"] = DroneStatus.ACTIVE if update.online else DroneStatus.OFFLINE

            updated = replace(drone, **changes)
            self.state.drones = [updated if d.id == drone.id else d for d in self.state.drones]
            self.device_connected = True

        return True

    def _live_connected(self, now: float) -> bool:
        # the live feed counts as up only while the relay says so and data is fresh
        if not self.device_connected:
            return False
        drone = self.live_drone
        if drone is None or drone.last_live_update is None:
            return False
        return now - drone.last_live_update <= self.config.live_timeout_s

    def is_live_connected(self) -> bool:
        with self._lock:
            return self._live_connected(self.clock())

    # -------- tick --------

    def tick(self, delta_s: float) -> bool:
        """
        Advance the world by one step.

        Positions integrate a fixed per-tick displacement; delta_s only feeds
        the elapsed-time accumulator. Returns False (and does nothing) while
        paused.
        """
        if delta_s < 0:
            raise ValueError(f"delta_s must be non-negative, got {delta_s}")

        with self._lock:
            prev = self.state
            if not prev.simulation_running:
                return False

            now = self.clock()
            live_connected = self._live_connected(now)
            keyboard = replace(self.keyboard)

            drones = [
                update_drone(
                    drone,
                    prev.drones,
                    prev.jamming_zones,
                    prev.targets,
                    prev.gps_enabled,
                    self.config,
                    now,
                    live_connected=live_connected,
                    keyboard=keyboard,
                )
                for drone in prev.drones
            ]

            targets = update_targets(prev.targets, self.config)
            targets = update_tracking(targets, drones, self.config)

            links = calculate_mesh_links(drones, self.config)
            peers = connected_peers(links)
            drones = [replace(d, connected_peers=peers.get(d.id, [])) for d in drones]

            self.decision_log.record(prev.drones, drones, now, prev.targets, targets)

            self.state = replace(
                prev,
                drones=drones,
                targets=targets,
                mesh_links=links,
                time_elapsed=prev.time_elapsed + delta_s,
                mission_status=MissionStatus.ACTIVE,
            )
        return True

    async def run_frame_loop(self) -> int:
        """
        Drive tick() at display-refresh cadence until the simulation is paused.

        A tick executes only when at least frame_interval_s of wall time has
        passed since the previous one, and it receives the measured delta.
        Paused time is not replayed: each call starts a fresh timing baseline.
        Returns the number of ticks executed.
        """
        if self._loop_active:
            raise RuntimeError("Frame loop is already running")
        self._loop_active = True

        ticks = 0
        last = self.clock()
        try:
            while self.state.simulation_running:
                await asyncio.sleep(self.config.frame_interval_s / 2)
                now = self.clock()
                delta = now - last
                if delta < self.config.frame_interval_s:
                    continue
                last = now
                if self.tick(delta):
                    ticks += 1
        finally:
            self._loop_active = False
        return ticks

    # -------- metrics --------

    def get_metrics(self) -> SimulationMetrics:
        with self._lock:
            state = self.state
            drones = state.drones
            total = len(drones)

            active = sum(1 for d in drones if d.status == DroneStatus.ACTIVE)
            jammed = sum(1 for d in drones if d.status == DroneStatus.JAMMED)
            active_links = sum(1 for link in state.mesh_links if link.active)
            possible_links = total * (total - 1) / 2

            # note: unknown battery counts as 0, which understates the true mean
            avg_battery = sum(d.battery or 0.0 for d in drones) / total if total else 0.0

            return SimulationMetrics(
                active_drones=active,
                jammed_drones=jammed,
                mesh_connectivity=(active_links / possible_links) * 100 if possible_links > 0 else 0.0,
                mission_progress=min(100.0, state.time_elapsed * self.config.mission_progress_rate),
                threat_count=sum(1 for t in state.targets if t.type == TargetType.HOSTILE),
                avg_battery=avg_battery,
                network_resilience=((active + jammed * 0.5) / total) * 100 if active > 0 else 0.0,
            )
