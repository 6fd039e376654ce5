from swarm_sim.config import SwarmConfig
from swarm_sim.drone_state import DroneState, MeshLink
from swarm_sim.mesh import calculate_mesh_links, connected_peers, link_strength
from swarm_sim.swarm_types import DroneRole, DroneStatus
import pytest


def _make_drone(drone_id: str, x: float, y: float, status: DroneStatus = DroneStatus.ACTIVE,
                jammed: bool = False):
    return DroneState(
        id=drone_id,
        position=(x, y),
        role=DroneRole.RELAY,
        status=status,
        in_jamming_zone=jammed,
    )


def test_strength_is_linear_falloff_within_range():
    cfg = SwarmConfig()
    near = calculate_mesh_links([_make_drone("a", 0, 0), _make_drone("b", 30, 0)], cfg)
    far = calculate_mesh_links([_make_drone("a", 0, 0), _make_drone("b", 60, 0)], cfg)

    assert near[0].strength == pytest.approx(1 - 30 / 150)
    assert far[0].strength == pytest.approx(1 - 60 / 150)
    assert near[0].strength > far[0].strength
    assert near[0].active and far[0].active


def test_no_link_at_or_beyond_range():
    cfg = SwarmConfig()
    assert calculate_mesh_links([_make_drone("a", 0, 0), _make_drone("b", 150, 0)], cfg) == []
    assert calculate_mesh_links([_make_drone("a", 0, 0), _make_drone("b", 400, 0)], cfg) == []
    assert len(calculate_mesh_links([_make_drone("a", 0, 0), _make_drone("b", 149.9, 0)], cfg)) == 1


def test_both_jammed_pair_is_penalized_and_inactive():
    cfg = SwarmConfig()
    links = calculate_mesh_links(
        [_make_drone("a", 100, 100, jammed=True), _make_drone("b", 150, 100, jammed=True)],
        cfg,
    )

    assert len(links) == 1
    assert links[0].strength == pytest.approx((1 - 50 / 150) * 0.3)
    assert links[0].strength == pytest.approx(0.2)
    assert links[0].active is False


def test_single_jammed_endpoint_keeps_full_strength():
    cfg = SwarmConfig()
    links = calculate_mesh_links(
        [_make_drone("a", 100, 100, jammed=True), _make_drone("b", 150, 100, jammed=False)],
        cfg,
    )

    assert links[0].strength == pytest.approx(1 - 50 / 150)
    assert links[0].active is True


def test_penalized_link_can_stay_active_with_softer_penalty():
    cfg = SwarmConfig(jam_penalty=0.9)
    links = calculate_mesh_links(
        [_make_drone("a", 0, 0, jammed=True), _make_drone("b", 15, 0, jammed=True)],
        cfg,
    )

    assert links[0].strength == pytest.approx(0.9 * 0.9)
    assert links[0].active is True


def test_offline_and_destroyed_drones_never_link():
    cfg = SwarmConfig()
    drones = [
        _make_drone("a", 0, 0),
        _make_drone("b", 1, 0, status=DroneStatus.OFFLINE),
        _make_drone("c", 0, 1, status=DroneStatus.DESTROYED),
        _make_drone("d", 2, 2, status=DroneStatus.JAMMED),
    ]

    links = calculate_mesh_links(drones, cfg)

    endpoints = {link.from_id for link in links} | {link.to_id for link in links}
    assert "b" not in endpoints
    assert "c" not in endpoints
    assert endpoints == {"a", "d"}


def test_every_pair_in_range_gets_exactly_one_link():
    cfg = SwarmConfig()
    drones = [_make_drone(f"d{i}", 10.0 * i, 0) for i in range(5)]

    links = calculate_mesh_links(drones, cfg)

    pairs = {frozenset((link.from_id, link.to_id)) for link in links}
    assert len(links) == 10
    assert len(pairs) == 10


def test_connected_peers_is_symmetric_and_skips_inactive_links():
    links = [
        MeshLink("a", "b", 0.8, True),
        MeshLink("b", "c", 0.6, True),
        MeshLink("a", "c", 0.1, False),
    ]

    peers = connected_peers(links)

    assert sorted(peers["a"]) == ["b"]
    assert sorted(peers["b"]) == ["a", "c"]
    assert sorted(peers["c"]) == ["b"]


def test_link_strength_never_negative():
    assert link_strength(300.0, 150.0) == 0.0


def test_mesh_link_other_endpoint():
    link = MeshLink("a", "b", 0.5, True)
    assert link.other("a") == "b"
    assert link.other("b") == "a"
    assert link.connects("a") and not link.connects("z")
    with pytest.raises(ValueError, match="not an endpoint"):
        link.other("z")
