from dataclasses import dataclass, field
from typing import List, Optional

from .drone_state import DroneState, JammingZone, Target, MeshLink
from .swarm_types import MissionStatus


# aggregate simulation state, owned by SwarmSimulation
@dataclass
class SimulationState:
    drones: List[DroneState] = field(default_factory=list)
    jamming_zones: List[JammingZone] = field(default_factory=list)
    targets: List[Target] = field(default_factory=list)

    # mesh_links are recomputed from scratch every tick
    mesh_links: List[MeshLink] = field(default_factory=list)

    # global toggles, passed explicitly into the engine each tick
    gps_enabled: bool = True
    jamming_active: bool = True
    simulation_running: bool = False

    # time_elapsed accumulates measured wall seconds, not tick counts
    time_elapsed: float = 0.0
    mission_status: MissionStatus = MissionStatus.PLANNING

    def drone_by_id(self, drone_id: str) -> Optional[DroneState]:
        for drone in self.drones:
            if drone.id == drone_id:
                return drone
        return None


# derived, read-only snapshot of swarm health
@dataclass(frozen=True)
class SimulationMetrics:
    active_drones: int
    jammed_drones: int
    mesh_connectivity: float     # percent of possible pairs with an active link
    mission_progress: float      # percent, capped at 100
    threat_count: int            # hostile targets on the map
    avg_battery: float           # unknown battery counts as 0
    network_resilience: float    # percent, jammed drones weigh half
