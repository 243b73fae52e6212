import logging

from modules.intel import StaticRoomIntel
from modules.maps.room_grid import CostMatrix, RoomTerrain
from modules.maps.world import Direction, WorldMap
from modules.navmesh.exits import EDGE_INDICES, detect_exits, edge_tile, split_runs, usable_tile_mask
from modules.navmesh.model import MAX_EXIT_ORDINAL
from tests.helpers.rooms import north_gap_room, open_room, open_rows, paint

# E0S1 with only its northern neighbour present.
ROOM = "E0S1"
NORTH_ONLY = WorldMap([ROOM, "E0S0"])


def test_edge_tiles():
    assert edge_tile(Direction.NORTH, 5) == (5, 0)
    assert edge_tile(Direction.SOUTH, 5) == (5, 49)
    assert edge_tile(Direction.WEST, 5) == (0, 5)
    assert edge_tile(Direction.EAST, 5) == (49, 5)
    assert list(EDGE_INDICES)[0] == 1
    assert list(EDGE_INDICES)[-1] == 48


def test_single_north_gap_gives_one_centred_exit():
    exits = detect_exits(ROOM, north_gap_room(ROOM, first=20, width=5), CostMatrix(), world=NORTH_ONLY)
    assert len(exits) == 1
    (run,) = exits
    assert run.id == 1
    assert run.feature.direction is Direction.NORTH
    assert run.center == (22, 0)
    assert run.tiles == tuple((x, 0) for x in range(20, 25))


def test_even_runs_round_towards_their_start():
    exits = detect_exits(ROOM, north_gap_room(ROOM, first=10, width=4), CostMatrix(), world=NORTH_ONLY)
    assert exits[0].center == (11, 0)


def test_edges_without_neighbours_have_no_exits():
    exits = detect_exits(ROOM, open_room(ROOM), CostMatrix(), world=NORTH_ONLY)
    assert {run.feature.direction for run in exits} == {Direction.NORTH}
    assert exits[0].center == (24, 0)
    assert len(exits[0].tiles) == 48


def test_corner_tiles_never_form_exits():
    rows = paint(open_rows(), ((x, 0) for x in range(1, 49)), "#")
    exits = detect_exits(ROOM, RoomTerrain.from_rows(ROOM, rows), CostMatrix(), world=NORTH_ONLY)
    assert exits == []


def test_costly_tiles_split_runs():
    costs = CostMatrix()
    costs.set(24, 0, 200)
    exits = detect_exits(ROOM, open_room(ROOM), costs, world=NORTH_ONLY, impassable_threshold=200)
    assert [run.id for run in exits] == [1, 2]
    assert exits[0].tiles[-1] == (23, 0)
    assert exits[1].tiles[0] == (25, 0)

    costs.set(24, 0, 199)
    assert len(detect_exits(ROOM, open_room(ROOM), costs, world=NORTH_ONLY, impassable_threshold=200)) == 1


def test_single_tile_and_edge_end_runs():
    gaps = {7, 45, 46, 47, 48}
    rows = paint(open_rows(), ((x, 0) for x in range(1, 49) if x not in gaps), "#")
    exits = detect_exits(ROOM, RoomTerrain.from_rows(ROOM, rows), CostMatrix(), world=NORTH_ONLY)
    assert [run.id for run in exits] == [1, 2]
    assert exits[0].tiles == ((7, 0),)
    assert exits[0].center == (7, 0)
    assert exits[1].tiles == tuple((x, 0) for x in range(45, 49))
    assert exits[1].center == (46, 0)


def test_other_access_tier_closes_the_edge():
    intel = StaticRoomIntel()
    intel.report("E0S0", access_tier="respawn")
    assert detect_exits(ROOM, open_room(ROOM), CostMatrix(), world=NORTH_ONLY, intel=intel) == []


def test_runs_beyond_the_per_edge_limit_are_dropped(caplog):
    # Usable tiles at every odd index give 24 separate runs.
    rows = paint(open_rows(), ((x, 0) for x in range(0, 50, 2)), "#")
    terrain = RoomTerrain.from_rows(ROOM, rows)
    usable = usable_tile_mask(terrain, CostMatrix(), 200)
    assert len(split_runs(usable, Direction.NORTH)) == 24

    with caplog.at_level(logging.WARNING, logger="modules.navmesh.exits"):
        exits = detect_exits(ROOM, terrain, CostMatrix(), world=NORTH_ONLY)
    assert len(exits) == MAX_EXIT_ORDINAL
    assert exits[-1].id == MAX_EXIT_ORDINAL
    assert any("Dropping 5 exit run" in record.getMessage() for record in caplog.records)
