import heapq
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Protocol, Tuple

import numpy as np

from modules.maps.room_grid import UNWALKABLE

GridCoord = Tuple[int, int]

# 8-connected movement; diagonal steps cost the same as orthogonal ones.
NEIGHBOUR_OFFSETS: Tuple[GridCoord, ...] = (
    (0, -1), (1, -1), (1, 0), (1, 1),
    (0, 1), (-1, 1), (-1, 0), (-1, -1),
)

DEFAULT_MAX_OPERATIONS = 4000


@dataclass
class TileSearchResult:
    """Outcome of a single-room tile search.

    ``path`` lists every tile stepped on after ``start`` up to and including
    the goal, so ``len(path)`` is the number of moves.
    """

    path: List[GridCoord] = field(default_factory=list)
    incomplete: bool = False
    operations: int = 0

    @property
    def length(self) -> int:
        return len(self.path)


class TileSearch(Protocol):
    def __call__(self, costs: np.ndarray, start: GridCoord, goal: GridCoord) -> TileSearchResult:
        ...


def heuristic(a: GridCoord, b: GridCoord) -> int:
    """Distance de Chebyshev entre deux points (8 directions)."""
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def find_room_path(
    costs: np.ndarray,
    start: GridCoord,
    goal: GridCoord,
    max_operations: int = DEFAULT_MAX_OPERATIONS,
) -> TileSearchResult:
    """
    Cherche le chemin le moins coûteux entre deux cases d'une même salle.

    Args:
        costs: Grille ``costs[x, y]`` du coût d'entrée de chaque case,
            ``UNWALKABLE`` pour les obstacles.
        start: Case de départ (x, y). Elle n'a pas besoin d'être praticable.
        goal: Case d'arrivée (x, y).
        max_operations: Nombre maximal de cases développées avant abandon.

    Returns:
        Un ``TileSearchResult``; ``incomplete`` est vrai si l'arrivée n'a pas
        été atteinte.
    """
    if start == goal:
        return TileSearchResult()

    width, height = costs.shape
    gx, gy = goal
    if not (0 <= gx < width and 0 <= gy < height) or costs[gx, gy] == UNWALKABLE:
        return TileSearchResult(incomplete=True)

    open_set: List[Tuple[int, int, GridCoord]] = []
    counter = 0
    heapq.heappush(open_set, (heuristic(start, goal), counter, start))

    came_from: Dict[GridCoord, GridCoord] = {}
    g_score: Dict[GridCoord, int] = {start: 0}
    visited = set()
    operations = 0

    while open_set:
        _, _, current = heapq.heappop(open_set)
        if current in visited:
            continue

        if current == goal:
            # Reconstruction du chemin
            path = []
            while current in came_from:
                path.append(current)
                current = came_from[current]
            path.reverse()
            return TileSearchResult(path=path, operations=operations)

        operations += 1
        if operations > max_operations:
            break

        visited.add(current)
        x, y = current

        for dx, dy in NEIGHBOUR_OFFSETS:
            nx, ny = x + dx, y + dy
            if not (0 <= nx < width and 0 <= ny < height):
                continue  # En dehors de la salle

            step_cost = int(costs[nx, ny])
            if step_cost == UNWALKABLE:
                continue  # Mur/Obstacle
            neighbor = (nx, ny)
            if neighbor in visited:
                continue  # Déjà visité

            tentative_g = g_score[current] + step_cost
            if neighbor not in g_score or tentative_g < g_score[neighbor]:
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                counter += 1
                f_score = tentative_g + heuristic(neighbor, goal)
                heapq.heappush(open_set, (f_score, counter, neighbor))

    return TileSearchResult(incomplete=True, operations=operations)  # Aucun chemin trouvé


def bounded_search(max_operations: int) -> Callable[[np.ndarray, GridCoord, GridCoord], TileSearchResult]:
    """Return a :class:`TileSearch` capped at ``max_operations`` expansions."""

    def _search(costs: np.ndarray, start: GridCoord, goal: GridCoord) -> TileSearchResult:
        return find_room_path(costs, start, goal, max_operations=max_operations)

    return _search
