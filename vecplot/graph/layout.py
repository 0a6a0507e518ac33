from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from vecplot.errors import LayoutError
from vecplot.graph.model import Graph


LOGGER = logging.getLogger(__name__)

BOX_LO = 0.1
BOX_HI = 0.9
CIRCLE_RADIUS = 0.4
_GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))
_COINCIDENT_EPS = 1e-6
_ALIASES = {
    "force": "force_directed",
    "forcedirected": "force_directed",
    "spring": "force_directed",
    "neato": "force_directed",
    "fdp": "force_directed",
    "sfdp": "force_directed",
    "dot": "hierarchical",
    "circo": "circular",
}


class LayoutAlgorithm(str, Enum):
    CIRCULAR = "circular"
    HIERARCHICAL = "hierarchical"
    FORCE_DIRECTED = "force_directed"
    GRID = "grid"

    @classmethod
    def parse(cls, value: "LayoutAlgorithm | str") -> "LayoutAlgorithm":
        if isinstance(value, LayoutAlgorithm):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            supported = ", ".join(a.value for a in cls)
            raise LayoutError(f"unsupported layout algorithm: {value!r} (expected one of {supported})") from None


@dataclass(frozen=True)
class ForceParams:
    iterations: int = 300
    tolerance: float = 1e-4
    repulsion: float = 0.01
    spring: float = 0.1
    damping: float = 0.85
    rest_length: float | None = None
    max_step: float = 0.05

    def __post_init__(self) -> None:
        if self.iterations <= 0:
            raise ValueError("iterations must be > 0")
        if self.tolerance < 0:
            raise ValueError("tolerance must be >= 0")
        if not 0.0 <= self.damping < 1.0:
            raise ValueError("damping must be in [0, 1)")


@dataclass(frozen=True)
class LayoutResult:
    algorithm: LayoutAlgorithm
    positions: dict[str, tuple[float, float]]
    ranks: dict[str, int] = field(default_factory=dict)
    ignored_edges: tuple[int, ...] = ()
    iterations: int = 0
    converged: bool = True

    def as_array(self) -> np.ndarray:
        return np.asarray(list(self.positions.values()), dtype=np.float64).reshape(-1, 2)


def compute_layout(
    graph: Graph,
    algorithm: LayoutAlgorithm | str = LayoutAlgorithm.HIERARCHICAL,
    *,
    params: ForceParams | None = None,
) -> LayoutResult:
    """Node positions in the unit box (x right, y down), normalized into [0.1, 0.9]."""
    algo = LayoutAlgorithm.parse(algorithm)
    if len(graph) == 0:
        raise LayoutError("graph has no nodes")
    if algo is LayoutAlgorithm.CIRCULAR:
        result = LayoutResult(algorithm=algo, positions=_to_positions(graph, circular_positions(len(graph))))
    elif algo is LayoutAlgorithm.GRID:
        result = LayoutResult(algorithm=algo, positions=_to_positions(graph, grid_positions(len(graph))))
    elif algo is LayoutAlgorithm.HIERARCHICAL:
        result = _hierarchical(graph)
    else:
        result = _force_directed(graph, params or ForceParams())
    _check_positions(result)
    return result


def circular_positions(n: int) -> np.ndarray:
    if n == 1:
        return np.asarray([[0.5, 0.5]], dtype=np.float64)
    angles = 2.0 * math.pi * np.arange(n, dtype=np.float64) / n
    return np.stack([0.5 + CIRCLE_RADIUS * np.cos(angles), 0.5 + CIRCLE_RADIUS * np.sin(angles)], axis=1)


def grid_positions(n: int) -> np.ndarray:
    cols = int(math.ceil(math.sqrt(n)))
    rows = int(math.ceil(n / cols))
    idx = np.arange(n)
    col = idx % cols
    row = idx // cols
    return np.stack([_spread(col, cols), _spread(row, rows)], axis=1)


def longest_path_ranks(n: int, edges: list[tuple[int, int]]) -> list[int]:
    """Ranks by longest path from a source; ``edges`` must be acyclic."""
    out_edges: list[list[int]] = [[] for _ in range(n)]
    indegree = [0] * n
    for u, v in edges:
        out_edges[u].append(v)
        indegree[v] += 1
    ranks = [0] * n
    queue = deque(i for i in range(n) if indegree[i] == 0)
    visited = 0
    while queue:
        u = queue.popleft()
        visited += 1
        for v in out_edges[u]:
            ranks[v] = max(ranks[v], ranks[u] + 1)
            indegree[v] -= 1
            if indegree[v] == 0:
                queue.append(v)
    if visited != n:
        raise LayoutError("ranking requires an acyclic edge set")
    return ranks


def find_first_back_edge(n: int, edges: list[tuple[int, int]], active: list[bool]) -> int | None:
    """Index of the first back edge met by a DFS in node and edge insertion order."""
    out_edges: list[list[int]] = [[] for _ in range(n)]
    for k, (u, _) in enumerate(edges):
        if active[k]:
            out_edges[u].append(k)
    state = [0] * n  # 0 unvisited, 1 on stack, 2 done
    for root in range(n):
        if state[root]:
            continue
        state[root] = 1
        stack: list[tuple[int, int]] = [(root, 0)]
        while stack:
            u, pos = stack[-1]
            if pos == len(out_edges[u]):
                state[u] = 2
                stack.pop()
                continue
            stack[-1] = (u, pos + 1)
            k = out_edges[u][pos]
            v = edges[k][1]
            if state[v] == 1:
                return k
            if state[v] == 0:
                state[v] = 1
                stack.append((v, 0))
    return None


def _hierarchical(graph: Graph) -> LayoutResult:
    index = graph.index_of()
    n = len(index)
    edges = [(index[e.source], index[e.target]) for e in graph.edges]
    active = [u != v for u, v in edges]
    ignored = [k for k, on in enumerate(active) if not on]
    while True:
        back = find_first_back_edge(n, edges, active)
        if back is None:
            break
        active[back] = False
        ignored.append(back)
    if ignored:
        LOGGER.debug("hierarchical layout ignored %d edge(s) for ranking: %s", len(ignored), sorted(ignored))

    ranks = longest_path_ranks(n, [e for e, on in zip(edges, active, strict=True) if on])
    layer_count = max(ranks) + 1
    layers: list[list[int]] = [[] for _ in range(layer_count)]
    for i, rank in enumerate(ranks):
        layers[rank].append(i)

    coords = np.zeros((n, 2), dtype=np.float64)
    for rank, members in enumerate(layers):
        xs = _spread(np.arange(len(members)), len(members))
        y = float(_spread(np.asarray([rank]), layer_count)[0])
        for slot, i in enumerate(members):
            coords[i] = (xs[slot], y)
    if graph.rankdir.upper() in ("LR", "RL"):
        coords = coords[:, ::-1].copy()
    if graph.rankdir.upper() in ("BT", "RL"):
        axis = 1 if graph.rankdir.upper() == "BT" else 0
        coords[:, axis] = 1.0 - coords[:, axis]

    node_ids = graph.node_ids
    return LayoutResult(
        algorithm=LayoutAlgorithm.HIERARCHICAL,
        positions=_to_positions(graph, coords),
        ranks={node_ids[i]: ranks[i] for i in range(n)},
        ignored_edges=tuple(sorted(ignored)),
    )


def _force_directed(graph: Graph, params: ForceParams) -> LayoutResult:
    n = len(graph)
    pos = circular_positions(n)
    if n == 1:
        return LayoutResult(algorithm=LayoutAlgorithm.FORCE_DIRECTED, positions=_to_positions(graph, pos))

    index = graph.index_of()
    pairs = np.asarray(
        [(index[e.source], index[e.target]) for e in graph.edges if e.source != e.target],
        dtype=np.int64,
    ).reshape(-1, 2)
    rest = params.rest_length if params.rest_length is not None else 0.8 / math.sqrt(n)
    ii, jj = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
    # Antisymmetric fallback direction for coincident pairs.
    theta = _GOLDEN_ANGLE * (np.minimum(ii, jj) * n + np.maximum(ii, jj))
    sign = np.where(ii < jj, 1.0, -1.0)
    fallback = np.stack([np.cos(theta), np.sin(theta)], axis=-1) * (sign * _COINCIDENT_EPS)[..., None]
    off_diag = ~np.eye(n, dtype=bool)

    velocity = np.zeros_like(pos)
    converged = False
    iterations = 0
    for iterations in range(1, params.iterations + 1):
        delta = pos[:, None, :] - pos[None, :, :]
        dist2 = np.sum(delta * delta, axis=-1)
        coincident = (dist2 < _COINCIDENT_EPS**2) & off_diag
        if np.any(coincident):
            delta = np.where(coincident[..., None], fallback, delta)
            dist2 = np.where(coincident, _COINCIDENT_EPS**2, dist2)
        np.fill_diagonal(dist2, np.inf)
        dist = np.sqrt(dist2)
        force = np.sum(params.repulsion * delta / (dist2 * dist)[..., None], axis=1)

        if pairs.size:
            vec = pos[pairs[:, 1]] - pos[pairs[:, 0]]
            length = np.maximum(np.linalg.norm(vec, axis=1), _COINCIDENT_EPS)
            pull = (params.spring * (length - rest) / length)[:, None] * vec
            np.add.at(force, pairs[:, 0], pull)
            np.add.at(force, pairs[:, 1], -pull)

        velocity = params.damping * (velocity + force)
        step = np.linalg.norm(velocity, axis=1)
        too_far = step > params.max_step
        if np.any(too_far):
            velocity[too_far] *= (params.max_step / step[too_far])[:, None]
            step = np.minimum(step, params.max_step)
        pos = pos + velocity
        if float(np.max(step)) < params.tolerance:
            converged = True
            break

    if not converged:
        LOGGER.warning("force-directed layout stopped after %d iterations without converging", iterations)
    else:
        LOGGER.debug("force-directed layout converged after %d iterations", iterations)
    return LayoutResult(
        algorithm=LayoutAlgorithm.FORCE_DIRECTED,
        positions=_to_positions(graph, normalize_positions(pos)),
        iterations=iterations,
        converged=converged,
    )


def normalize_positions(pos: np.ndarray) -> np.ndarray:
    """Uniformly scale and centre positions into the [0.1, 0.9] box."""
    lo = np.min(pos, axis=0)
    hi = np.max(pos, axis=0)
    span = float(np.max(hi - lo))
    center = (lo + hi) / 2.0
    if span <= 0:
        return np.full_like(pos, 0.5)
    return 0.5 + (pos - center) * ((BOX_HI - BOX_LO) / span)


def _spread(idx: np.ndarray, count: int) -> np.ndarray:
    if count <= 1:
        return np.full(np.shape(idx), 0.5, dtype=np.float64)
    return BOX_LO + (BOX_HI - BOX_LO) * np.asarray(idx, dtype=np.float64) / (count - 1)


def _to_positions(graph: Graph, coords: np.ndarray) -> dict[str, tuple[float, float]]:
    return {node_id: (float(coords[i, 0]), float(coords[i, 1])) for i, node_id in enumerate(graph.node_ids)}


def _check_positions(result: LayoutResult) -> None:
    arr = result.as_array()
    if not np.all(np.isfinite(arr)):
        raise LayoutError(f"{result.algorithm.value} layout produced non-finite positions")
