import pytest

from modules.maps.world import Direction
from modules.navmesh.model import (
    EXIT_ID_SPACE,
    REPRESENTATIVE_POINT,
    ExitFeature,
    LocalPathTable,
    PortalLink,
    Region,
    RoomMeshEntry,
    exit_direction,
    exit_ordinal,
    is_valid_exit_id,
    make_exit_id,
    mirror_exit_id,
)


def test_exit_ids_encode_direction_and_ordinal():
    assert make_exit_id(Direction.NORTH, 1) == 1
    assert make_exit_id(Direction.EAST, 2) == 22
    assert make_exit_id(Direction.WEST, 19) == 79
    assert exit_direction(45) is Direction.SOUTH
    assert exit_ordinal(45) == 5
    with pytest.raises(ValueError):
        make_exit_id(Direction.NORTH, 0)
    with pytest.raises(ValueError):
        make_exit_id(Direction.NORTH, 20)


def test_mirror_is_an_involution_onto_the_opposite_edge():
    for exit_id in range(EXIT_ID_SPACE):
        if not is_valid_exit_id(exit_id):
            continue
        mirrored = mirror_exit_id(exit_id)
        assert mirror_exit_id(mirrored) == exit_id
        assert exit_direction(mirrored) is exit_direction(exit_id).opposite
        assert exit_ordinal(mirrored) == exit_ordinal(exit_id)


def test_invalid_exit_features_are_rejected():
    assert not is_valid_exit_id(0)
    assert not is_valid_exit_id(40)
    with pytest.raises(ValueError):
        ExitFeature(id=20, center=(49, 0))


def test_local_path_table_lookup_is_symmetric_for_exit_pairs():
    table = LocalPathTable()
    table.set(21, 61, 49)
    table.set(21, REPRESENTATIVE_POINT, 25)
    assert table.lookup(21, 61) == 49
    assert table.lookup(61, 21) == 49
    assert table.has_pair(61, 21)
    assert table.to_center(21) == 25
    assert table.to_center(61) is None
    assert table.lookup(REPRESENTATIVE_POINT, 61) is None
    assert len(table) == 2
    with pytest.raises(ValueError):
        table.set(1, 2, -1)


def _sample_entry() -> RoomMeshEntry:
    table = LocalPathTable()
    table.set(1, 0, 10)
    table.set(21, 0, 12)
    return RoomMeshEntry(
        room="E3S3",
        generation=1234,
        exits=(ExitFeature(1, (22, 0)), ExitFeature(21, (49, 24)), ExitFeature(61, (0, 10))),
        regions=(
            Region(exits=(1, 21), center=(30, 20), bounding_box=(26, 0, 49, 49)),
            Region(exits=(61,), center=(10, 20), bounding_box=(0, 0, 24, 49)),
        ),
        local_paths=table,
        portals=(PortalLink("E9S9", (5, 5)), PortalLink("E1S1", (7, 7), target_shard="shard1")),
    )


def test_region_helpers():
    entry = _sample_entry()
    assert entry.region_count == 2
    assert entry.region_for_exit(61).center == (10, 20)
    assert [e.id for e in entry.connected_exits(1)] == [21]
    assert entry.connected_exits(61) == []
    assert entry.exit_by_id(99) is None
    assert [e.id for e in entry.exits_of_region(entry.regions[0])] == [1, 21]


def test_single_region_rooms_connect_every_exit():
    entry = RoomMeshEntry("E0S0", 0, exits=(ExitFeature(1, (5, 0)), ExitFeature(41, (5, 49))))
    assert entry.region_count == 1
    assert [e.id for e in entry.connected_exits(1)] == [41]
    assert RoomMeshEntry("E0S0", 0).region_count == 0


def test_entry_serialization_round_trip():
    entry = _sample_entry()
    data = entry.to_dict()
    assert data["exits"][0] == {"id": 1, "center": 22}
    assert data["regions"][0]["center"] == 30 + 50 * 20
    restored = RoomMeshEntry.from_dict(data)
    assert restored == entry
    assert restored.portals[1].is_intershard


def test_single_region_entries_omit_regions():
    data = RoomMeshEntry("E0S0", 5, exits=(ExitFeature(1, (5, 0)),)).to_dict()
    assert "regions" not in data
    assert "portals" not in data
