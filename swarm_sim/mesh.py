"""
Mesh topology: derive pairwise radio links from drone positions and jamming
exposure. Links are not stored state; they are rebuilt from scratch each tick.
"""

from itertools import combinations
from typing import Dict, List, Sequence

from .config import SwarmConfig
from .drone_state import DroneState, MeshLink
from .geometry import distance


def link_strength(dist: float, mesh_range: float) -> float:
    # linear falloff from 1 at zero distance to 0 at the edge of range
    return max(0.0, 1.0 - dist / mesh_range)


def calculate_mesh_links(drones: Sequence[DroneState], config: SwarmConfig) -> List[MeshLink]:
    """
    Build the complete link set for the given drones.

    Only active or jammed drones take part. A pair closer than mesh_range gets
    a link whose strength falls off linearly with distance. When both ends sit
    inside a jamming zone the strength is multiplied by jam_penalty, and the
    link stays active only if the degraded strength still exceeds
    link_active_threshold.
    """
    candidates = [d for d in drones if d.is_linkable]
    links: List[MeshLink] = []

    for a, b in combinations(candidates, 2):
        dist = distance(a.position, b.position)
        if dist >= config.mesh_range:
            continue

        strength = link_strength(dist, config.mesh_range)
        both_jammed = a.in_jamming_zone and b.in_jamming_zone
        if both_jammed:
            strength *= config.jam_penalty

        links.append(
            MeshLink(
                from_id=a.id,
                to_id=b.id,
                strength=strength,
                active=(not both_jammed) or strength > config.link_active_threshold,
            )
        )

    return links


def connected_peers(links: Sequence[MeshLink]) -> Dict[str, List[str]]:
    # map each drone id to the peers it reaches over active links
    # note: links are unordered, so both endpoints get an entry
    peers: Dict[str, List[str]] = {}
    for link in links:
        if not link.active:
            continue
        peers.setdefault(link.from_id, []).append(link.to_id)
        peers.setdefault(link.to_id, []).append(link.from_id)
    return peers
