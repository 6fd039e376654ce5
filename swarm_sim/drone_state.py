from dataclasses import dataclass, field
from typing import Tuple, Optional, List

from shapely.geometry import Point

from .swarm_types import DroneRole, DroneStatus, ThreatLevel, TargetType


# represents the state of a single drone in the swarm
# note: instances are treated as values; the engine builds new ones with dataclasses.replace
@dataclass
class DroneState:
    id: str                                  # unique id of the drone
    position: Tuple[float, float]            # (x, y) map coordinates
    role: DroneRole                          # fixed at creation

    velocity: Tuple[float, float] = (0.0, 0.0)   # (vx, vy) displacement per tick
    heading: float = 0.0                     # degrees, 0-360

    # battery is a percentage (0-100); None means the level is unknown
    # note: the live drone starts unknown until its device reports
    battery: Optional[float] = 100.0

    status: DroneStatus = DroneStatus.ACTIVE
    signal_strength: float = 1.0             # 0-1
    gps_available: bool = True
    in_jamming_zone: bool = False
    threat_level: ThreatLevel = ThreatLevel.NONE

    # ids of peers with an active mesh link, rebuilt every tick
    connected_peers: List[str] = field(default_factory=list)

    # last_known_position freezes while gps is unavailable (inertial drift)
    last_known_position: Optional[Tuple[float, float]] = None

    altitude: float = 100.0                  # cosmetic only
    is_live_device: bool = False             # true for the one externally driven drone
    last_live_update: Optional[float] = None # wall time of the last external override

    def __post_init__(self):
        if self.last_known_position is None:
            self.last_known_position = self.position

    @property
    def is_linkable(self) -> bool:
        # offline/destroyed drones never join the mesh
        return self.status in (DroneStatus.ACTIVE, DroneStatus.JAMMED)

    @property
    def display_name(self) -> str:
        return f"{self.role.value.upper()}-{self.id[:4].upper()}"


# circular region that denies gps and degrades the radio link
@dataclass
class JammingZone:
    id: str
    center: Tuple[float, float]
    radius: float
    intensity: float = 1.0                   # 0-1
    active: bool = True

    def contains(self, position: Tuple[float, float]) -> bool:
        # strict interior only; a drone exactly on the rim is outside
        return Point(self.center).distance(Point(position)) < self.radius


# a known entity moving across the map
@dataclass
class Target:
    id: str
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    type: TargetType = TargetType.UNKNOWN

    # tracked_by lists drones currently holding this target inside threat range
    tracked: bool = False
    tracked_by: List[str] = field(default_factory=list)

    @property
    def is_hostile(self) -> bool:
        return self.type == TargetType.HOSTILE


# a derived, unordered connectivity relation between two drones
@dataclass(frozen=True)
class MeshLink:
    from_id: str
    to_id: str
    strength: float                          # 0-1
    active: bool

    def connects(self, drone_id: str) -> bool:
        return drone_id == self.from_id or drone_id == self.to_id

    def other(self, drone_id: str) -> str:
        # the peer on the far side of the link from drone_id
        if drone_id == self.from_id:
            return self.to_id
        if drone_id == self.to_id:
            return self.from_id
        raise ValueError(f"Drone {drone_id} is not an endpoint of this link")
