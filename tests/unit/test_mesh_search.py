import pytest

from modules.intel import StaticRoomIntel
from modules.maps.room_grid import PortalStructure
from modules.maps.world import WorldPosition
from modules.navmesh.search import IncompleteReason, PathOptions, SearchArena, SearchNode
from tests.helpers.rooms import (
    CORRIDOR,
    StepClock,
    build_navmesh,
    corridor_navmesh,
    open_room,
    split_room,
    square_navmesh,
)

A, B, C = CORRIDOR
START = WorldPosition(A, 10, 24)
GOAL = WorldPosition(C, 30, 24)


def _rooms(path):
    return [position.room for position in path]


def test_corridor_path_transits_the_middle_room():
    nav = corridor_navmesh()
    result = nav.find_path(START, GOAL)
    assert not result.incomplete
    assert result.path[0] == START
    assert result.path[-1] == GOAL
    assert B in _rooms(result.path)

    middle = nav.store.get(B).local_paths.lookup(61, 21)
    arrival = nav.store.get(C).local_paths.to_center(61)
    assert result.steps == 39 + middle + arrival == 112
    assert result.path == [START, WorldPosition(A, 49, 24), WorldPosition(B, 49, 24), GOAL]


def test_goal_on_the_entry_exit_center_is_reached():
    nav = corridor_navmesh()
    goal = WorldPosition(B, 0, 24)
    result = nav.find_path(START, goal)
    assert not result.incomplete
    assert result.path == [START, WorldPosition(A, 49, 24), goal]
    assert result.steps == 39 + nav.store.get(B).local_paths.to_center(61)
    assert nav.estimate_travel_time(START, goal, now=0) == result.steps


def test_same_room_exit_pair_uses_the_table_entry():
    nav = corridor_navmesh()
    start, goal = WorldPosition(B, 0, 24), WorldPosition(B, 49, 24)
    result = nav.find_path(start, goal)
    assert result.path == [start, goal]
    assert result.steps == nav.store.get(B).local_paths.lookup(61, 21)


def test_same_room_positions_use_a_local_search():
    nav = corridor_navmesh()
    start, goal = WorldPosition(A, 10, 10), WorldPosition(A, 20, 15)
    result = nav.find_path(start, goal)
    assert result.path == [start, goal]
    assert result.steps == 10
    assert nav.find_path(start, start).path == [start]


def test_tiny_budget_never_returns_a_partial_path():
    nav = corridor_navmesh(clock=StepClock(1.0))
    result = nav.find_path(START, GOAL, PathOptions(cpu_budget_ms=1))
    assert result.incomplete
    assert result.reason is IncompleteReason.BUDGET_EXCEEDED
    assert result.path == []
    assert result.reason.is_retryable


def test_generous_budget_with_a_slow_clock():
    nav = corridor_navmesh(clock=StepClock(0.0001))
    assert not nav.find_path(START, GOAL, PathOptions(cpu_budget_ms=20)).incomplete


def test_max_path_length():
    nav = corridor_navmesh()
    result = nav.find_path(START, GOAL, PathOptions(max_path_length=50))
    assert result.reason is IncompleteReason.PATH_TOO_LONG
    assert result.path == []
    assert nav.find_path(START, GOAL, PathOptions(max_path_length=112)).steps == 112


def test_missing_start_room_has_no_mesh_data():
    nav = corridor_navmesh()
    result = nav.find_path(WorldPosition("E5S5", 1, 1), GOAL)
    assert result.reason is IncompleteReason.NO_MESH_DATA


def test_ungenerated_goal_room_gives_no_path():
    nav = corridor_navmesh(generate_at=None)
    nav.generate_or_refresh(A, 0)
    nav.generate_or_refresh(B, 0)
    result = nav.find_path(START, GOAL)
    assert result.reason is IncompleteReason.NO_PATH
    assert not result.reason.is_retryable


def test_hostile_rooms_need_allow_danger():
    intel = StaticRoomIntel(player="me")
    intel.report(B, owner="rival")
    nav = corridor_navmesh(intel=intel)
    assert nav.find_path(START, GOAL).reason is IncompleteReason.NO_PATH

    result = nav.find_path(START, GOAL, PathOptions(allow_danger=True))
    assert not result.incomplete
    assert result.steps == 112


def test_allied_rooms_are_open():
    intel = StaticRoomIntel(player="me", allies={"friend"})
    intel.report(B, owner="friend")
    nav = corridor_navmesh(intel=intel)
    assert nav.find_path(START, GOAL).steps == 112


def test_dangerous_rooms_are_avoided_when_an_alternative_exists():
    intel = StaticRoomIntel()
    intel.report("E1S0", dangerous=True)
    nav = square_navmesh(intel=intel)
    start, goal = WorldPosition("E0S0", 10, 10), WorldPosition("E1S1", 30, 30)
    result = nav.find_path(start, goal)
    assert not result.incomplete
    assert "E0S1" in _rooms(result.path)
    assert "E1S0" not in _rooms(result.path)
    assert result.steps == 88


def test_cost_multipliers():
    intel = StaticRoomIntel()
    intel.report("E1S0", dangerous=True)
    intel.report("E0S1", reserved_by="rival")
    intel.report("E1S1", owner="rival", dangerous=True)
    intel.report("E0S0", owner="friend")
    intel.allies.add("friend")
    pathfinder = square_navmesh(intel=intel, generate_at=None).pathfinder
    assert pathfinder.cost_multiplier("E0S0") == 1.0
    assert pathfinder.cost_multiplier("E1S0") == 2.0
    assert pathfinder.cost_multiplier("E0S1") == 1.5
    assert pathfinder.cost_multiplier("E1S1") == 10.0


def test_goal_behind_a_wall_is_not_reached_through_the_wrong_exit():
    rooms = {"E0S1": open_room("E0S1"), "E1S1": split_room("E1S1"), "E2S1": open_room("E2S1")}
    nav = build_navmesh(rooms)
    assert len(nav.store.get("E1S1").regions) == 2

    start = WorldPosition("E0S1", 10, 24)
    reachable = nav.find_path(start, WorldPosition("E1S1", 10, 10))
    assert not reachable.incomplete

    walled_off = nav.find_path(start, WorldPosition("E1S1", 40, 10))
    assert walled_off.reason is IncompleteReason.NO_PATH


def test_same_room_different_regions_falls_back_to_the_mesh():
    rooms = {"E0S1": open_room("E0S1"), "E1S1": split_room("E1S1"), "E2S1": open_room("E2S1")}
    nav = build_navmesh(rooms)
    result = nav.find_path(WorldPosition("E1S1", 10, 10), WorldPosition("E1S1", 40, 10))
    assert result.reason is IncompleteReason.NO_PATH
    assert result.explored >= 1


def test_portal_hop():
    portals = {"E0S0": [PortalStructure(25, 25, "E5S5")]}
    nav = build_navmesh({"E0S0": open_room("E0S0"), "E5S5": open_room("E5S5")}, portals=portals)
    start, goal = WorldPosition("E0S0", 10, 10), WorldPosition("E5S5", 30, 30)
    result = nav.find_path(start, goal)
    assert not result.incomplete
    assert result.path == [start, WorldPosition("E0S0", 25, 25), goal]
    assert result.steps == 2 * nav.settings.portal_cost


def test_intershard_portals_are_stored_but_not_followed():
    portals = {"E0S0": [PortalStructure(25, 25, "E5S5", destination_shard="shard1")]}
    nav = build_navmesh({"E0S0": open_room("E0S0"), "E5S5": open_room("E5S5")}, portals=portals)
    assert nav.store.get("E0S0").portals[0].is_intershard
    result = nav.find_path(WorldPosition("E0S0", 10, 10), WorldPosition("E5S5", 30, 30))
    assert result.reason is IncompleteReason.NO_PATH


def test_search_arena_records():
    arena = SearchArena()
    root = arena.add(SearchNode(room=A, position=WorldPosition(A, 49, 24), parent=None, cost=39, steps=39, heuristic=50, exit_id=21))
    child = arena.add(SearchNode(room=B, position=WorldPosition(B, 49, 24), parent=root, cost=88, steps=88, heuristic=0, exit_id=21))
    assert [node.room for node in arena.lineage(child)] == [A, B]
    assert arena[child].priority == 88
    records = arena.to_records()
    assert len(records) == len(arena) == 2
    assert records[1]["parent"] == 0
    assert records[1]["position"] == [B, 49, 24]


@pytest.mark.parametrize("reason", list(IncompleteReason))
def test_reason_values_are_stable_strings(reason):
    assert reason.value == reason.name.lower()
