"""
Drone behavior engine.

update_drone() produces a drone's next-tick state from the current world.
Non-live drones run the role-based decision logic; the single live drone is
either left to its external feed or steered by keyboard fallback input.

The engine is a pure function of its arguments. Global toggles (gps) and the
wall clock used for scout patrol phase are passed in explicitly.
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
import math
import re

from .config import SwarmConfig
from .drone_state import DroneState, JammingZone, Target
from .geometry import Vec2, clamp_to_bounds, heading_degrees, unit_vector, centroid, distance
from .swarm_types import DroneRole, DroneStatus, ThreatLevel

if TYPE_CHECKING:
    from .live_control import KeyboardState


_ID_PREFIX = re.compile(r"[0-9a-zA-Z]*")


# everything a role planner may look at when choosing where to go
@dataclass
class RoleContext:
    drone: DroneState
    drones: Sequence[DroneState]
    active_zones: List[JammingZone]
    targets: Sequence[Target]
    nearby_threats: List[Target]
    in_jamming: bool
    now: float
    config: SwarmConfig


def patrol_phase_offset(drone_id: str) -> float:
    # read the leading alphanumeric run of the id as a base-36 number
    # note: spreads scouts around the patrol ellipse
    prefix = _ID_PREFIX.match(drone_id).group(0)
    if not prefix:
        return 0.0
    return float(int(prefix, 36))


def find_nearby_threats(position: Vec2, targets: Sequence[Target], threat_range: float) -> List[Target]:
    # hostile targets strictly inside threat_range, in target-list order
    return [t for t in targets if t.is_hostile and distance(position, t.position) < threat_range]


def assess_threat(nearby_threats: Sequence[Target], in_jamming: bool) -> ThreatLevel:
    if len(nearby_threats) > 1:
        return ThreatLevel.HIGH
    if len(nearby_threats) == 1:
        return ThreatLevel.MEDIUM
    if in_jamming:
        return ThreatLevel.LOW
    return ThreatLevel.NONE


# ---- role planners ----
# each returns a point to steer toward, or None to keep the current velocity

def _scout_target(ctx: RoleContext) -> Optional[Vec2]:
    x, y = ctx.drone.position

    if ctx.in_jamming and ctx.active_zones:
        # radial escape away from the nearest jammer center
        nearest = min(ctx.active_zones, key=lambda z: distance(ctx.drone.position, z.center))
        angle = math.atan2(y - nearest.center[1], x - nearest.center[0])
        step = ctx.config.escape_distance
        return (x + math.cos(angle) * step, y + math.sin(angle) * step)

    # smooth elliptical patrol around the map center
    phase = ctx.now / ctx.config.patrol_period_s + patrol_phase_offset(ctx.drone.id)
    cx, cy = ctx.config.patrol_center
    rx, ry = ctx.config.patrol_radii
    return (cx + math.cos(phase) * rx, cy + math.sin(phase) * ry)


def _tracker_target(ctx: RoleContext) -> Optional[Vec2]:
    # note: first hostile in list order wins; there is no tactical ranking yet
    for target in ctx.targets:
        if target.is_hostile:
            return target.position
    return None


def _relay_target(ctx: RoleContext) -> Optional[Vec2]:
    # sit at the swarm centroid to keep the mesh stitched together
    return centroid(d.position for d in ctx.drones)


def _interceptor_target(ctx: RoleContext) -> Optional[Vec2]:
    if ctx.nearby_threats:
        return ctx.nearby_threats[0].position
    return None


ROLE_PLANNERS: Dict[DroneRole, Callable[[RoleContext], Optional[Vec2]]] = {
    DroneRole.SCOUT: _scout_target,
    DroneRole.TRACKER: _tracker_target,
    DroneRole.RELAY: _relay_target,
    DroneRole.INTERCEPTOR: _interceptor_target,
}


def steer_toward(
    position: Vec2,
    goal: Vec2,
    speed: float,
    arrival_tolerance: float,
    current_heading: float,
) -> Tuple[Vec2, float]:
    # unit-speed pursuit; velocity zeroes inside arrival_tolerance and heading is held
    (ux, uy), dist = unit_vector(position, goal)
    if dist > arrival_tolerance:
        velocity = (ux * speed, uy * speed)
        return velocity, heading_degrees(*velocity)
    return (0.0, 0.0), current_heading


def _keyboard_step(drone: DroneState, keyboard: Optional["KeyboardState"], config: SwarmConfig) -> DroneState:
    # manual fallback for the live drone while its device feed is down
    vx, vy = (0.0, 0.0) if keyboard is None else keyboard.direction()
    velocity = (vx * config.keyboard_speed, vy * config.keyboard_speed)

    heading = drone.heading
    if velocity != (0.0, 0.0):
        heading = heading_degrees(*velocity)

    position = clamp_to_bounds(
        (drone.position[0] + velocity[0], drone.position[1] + velocity[1]),
        config.bounds,
    )

    return replace(
        drone,
        position=position,
        velocity=velocity,
        heading=heading,
        last_known_position=position,
    )


def _drain_battery(battery: Optional[float], amount: float) -> Optional[float]:
    # unknown stays unknown; known levels never go below zero
    if battery is None:
        return None
    return max(0.0, battery - amount)


def _update_signal(signal: float, in_jamming: bool, config: SwarmConfig) -> float:
    if in_jamming:
        return max(config.signal_floor, signal - config.signal_decay)
    return min(1.0, signal + config.signal_recovery)


def derive_status(battery: Optional[float], in_jamming: bool) -> DroneStatus:
    if battery is not None and battery <= 0:
        return DroneStatus.OFFLINE
    if in_jamming:
        return DroneStatus.JAMMED
    return DroneStatus.ACTIVE


def update_drone(
    drone: DroneState,
    drones: Sequence[DroneState],
    jamming_zones: Sequence[JammingZone],
    targets: Sequence[Target],
    gps_enabled: bool,
    config: SwarmConfig,
    now: float,
    live_connected: bool = False,
    keyboard: Optional["KeyboardState"] = None,
) -> DroneState:
    """
    Advance one drone by a single tick.

    Args:
        drone: the drone to update
        drones: full roster as of the start of the tick (used by relays)
        jamming_zones: all zones; inactive ones are ignored
        targets: all targets as of the start of the tick
        gps_enabled: global gps toggle
        config: tunables
        now: simulation clock in seconds, drives the scout patrol phase
        live_connected: whether the live drone's external feed is up
        keyboard: directional flags used when the live feed is down
    """
    if drone.status == DroneStatus.DESTROYED:
        return drone

    if drone.is_live_device:
        if live_connected:
            # pose and battery are written by the live-control adapter
            return drone
        return _keyboard_step(drone, keyboard, config)

    position = drone.position
    active_zones = [z for z in jamming_zones if z.active]
    in_jamming = any(z.contains(position) for z in active_zones)
    gps_available = gps_enabled and not in_jamming

    nearby_threats = find_nearby_threats(position, targets, config.threat_range)
    threat_level = assess_threat(nearby_threats, in_jamming)

    ctx = RoleContext(
        drone=drone,
        drones=drones,
        active_zones=active_zones,
        targets=targets,
        nearby_threats=nearby_threats,
        in_jamming=in_jamming,
        now=now,
        config=config,
    )
    goal = ROLE_PLANNERS[drone.role](ctx)

    velocity = drone.velocity
    heading = drone.heading
    if goal is not None:
        speed = config.interceptor_speed if drone.role == DroneRole.INTERCEPTOR else config.cruise_speed
        velocity, heading = steer_toward(position, goal, speed, config.arrival_tolerance, heading)

    new_position = clamp_to_bounds(
        (position[0] + velocity[0], position[1] + velocity[1]),
        config.bounds,
    )

    battery = _drain_battery(drone.battery, config.battery_drain)

    return replace(
        drone,
        position=new_position,
        velocity=velocity,
        heading=heading,
        gps_available=gps_available,
        in_jamming_zone=in_jamming,
        threat_level=threat_level,
        last_known_position=new_position if gps_available else drone.last_known_position,
        battery=battery,
        signal_strength=_update_signal(drone.signal_strength, in_jamming, config),
        status=derive_status(battery, in_jamming),
    )
