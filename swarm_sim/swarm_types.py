from enum import Enum


# role a drone plays in the swarm; fixed for the lifetime of the drone
class DroneRole(Enum):
    SCOUT = "scout"                # patrols, escapes jamming
    RELAY = "relay"                # holds the swarm centroid for mesh coverage
    TRACKER = "tracker"            # follows hostile targets
    INTERCEPTOR = "interceptor"    # closes on nearby threats at double speed


# operational status, derived every tick
class DroneStatus(Enum):
    ACTIVE = "active"
    JAMMED = "jammed"
    OFFLINE = "offline"
    DESTROYED = "destroyed"


# proximity/count based classification of nearby hostiles
class ThreatLevel(Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# classification of a tracked entity
class TargetType(Enum):
    HOSTILE = "hostile"
    UNKNOWN = "unknown"
    FRIENDLY = "friendly"


# mission lifecycle
# note: only PLANNING and ACTIVE are reachable today; COMPLETE/FAILED are kept
# for mission-objective logic that does not exist yet
class MissionStatus(Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETE = "complete"
    FAILED = "failed"


# kinds of entries written to the decision log
class DecisionType(Enum):
    NAVIGATION = "navigation"
    THREAT = "threat"
    COMMUNICATION = "communication"
    ROLE = "role"
    EVASION = "evasion"
    TRACKING = "tracking"


class DecisionPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
