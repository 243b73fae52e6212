import numpy as np
import unittest

from core.pathfinding import bounded_search, find_room_path, heuristic
from modules.maps.room_grid import UNWALKABLE


def _grid(value=1):
    return np.full((50, 50), value, dtype=np.int16)


# --- UNIT TESTS ---
class TestTileSearchUnit(unittest.TestCase):
    def test_straight_line_length_counts_moves(self):
        result = find_room_path(_grid(), (10, 24), (49, 24))
        self.assertFalse(result.incomplete)
        self.assertEqual(result.length, 39)
        self.assertEqual(result.path[-1], (49, 24))
        self.assertNotIn((10, 24), result.path)

    def test_diagonal_moves_cost_one(self):
        result = find_room_path(_grid(), (0, 0), (5, 3))
        self.assertEqual(result.length, 5)
        self.assertEqual(result.length, heuristic((0, 0), (5, 3)))

    def test_start_equals_goal(self):
        result = find_room_path(_grid(), (7, 7), (7, 7))
        self.assertFalse(result.incomplete)
        self.assertEqual(result.path, [])

    def test_wall_column_blocks_search(self):
        costs = _grid()
        costs[25, :] = UNWALKABLE
        result = find_room_path(costs, (10, 10), (40, 10))
        self.assertTrue(result.incomplete)
        self.assertEqual(result.path, [])

    def test_unwalkable_goal_is_incomplete(self):
        costs = _grid()
        costs[30, 30] = UNWALKABLE
        self.assertTrue(find_room_path(costs, (0, 0), (30, 30)).incomplete)

    def test_expensive_tiles_are_avoided(self):
        costs = _grid()
        # Swamp band with a single plain gap at the bottom.
        costs[20, 0:49] = 5
        result = find_room_path(costs, (10, 45), (30, 45))
        self.assertFalse(result.incomplete)
        self.assertEqual(result.length, 20)
        for x, y in result.path:
            if x == 20:
                self.assertEqual(y, 49)

    def test_operation_cap(self):
        search = bounded_search(1)
        result = search(_grid(), (0, 0), (40, 40))
        self.assertTrue(result.incomplete)
        self.assertLessEqual(result.operations, 2)


if __name__ == "__main__":
    unittest.main()
