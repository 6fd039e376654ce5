from dataclasses import replace
from typing import List, Sequence

from .config import SwarmConfig
from .drone_state import DroneState, Target
from .geometry import clamp_to_bounds, distance
from .swarm_types import DroneRole


# roles that count as holding a target when it is inside threat range
_TRACKING_ROLES = (DroneRole.TRACKER, DroneRole.INTERCEPTOR)


def update_targets(targets: Sequence[Target], config: SwarmConfig) -> List[Target]:
    # advance each target one tick and reflect it off the map edges
    min_x, min_y, max_x, max_y = config.bounds
    moved: List[Target] = []

    for target in targets:
        vx, vy = target.velocity
        x, y = clamp_to_bounds(
            (target.position[0] + vx, target.position[1] + vy),
            config.bounds,
        )

        # elastic bounce: negate the component that touched a boundary
        if x <= min_x or x >= max_x:
            vx = -vx
        if y <= min_y or y >= max_y:
            vy = -vy

        moved.append(replace(target, position=(x, y), velocity=(vx, vy)))

    return moved


def update_tracking(
    targets: Sequence[Target],
    drones: Sequence[DroneState],
    config: SwarmConfig,
) -> List[Target]:
    # record which linkable trackers/interceptors currently hold each target
    out: List[Target] = []
    for target in targets:
        holders = [
            d.id
            for d in drones
            if d.role in _TRACKING_ROLES
            and d.is_linkable
            and distance(d.position, target.position) < config.threat_range
        ]
        out.append(replace(target, tracked=len(holders) > 0, tracked_by=holders))
    return out
