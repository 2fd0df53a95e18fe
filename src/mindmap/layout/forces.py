"""Forces for the layout simulation.

Each force adjusts node velocities (or, for centering, positions) in place
on a shared `SimState`. Repulsion switches from exact pairwise sums to a
Barnes-Hut quadtree above a few hundred nodes, and collisions only test
pairs found by a spatial index, so a tick stays cheap for thousands of
nodes.
"""

from dataclasses import dataclass

import numpy as np
from scipy.spatial import cKDTree

BLOCK_SIZE = 512
JIGGLE_SCALE = 1e-6

# Barnes-Hut settings
THETA = 0.9
EXACT_LIMIT = 256
MAX_TREE_DEPTH = 9


@dataclass
class SimState:
    """Positions, velocities and pins of all simulated nodes."""

    x: np.ndarray
    y: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    fx: np.ndarray  # NaN where not pinned
    fy: np.ndarray
    rng: np.random.Generator

    @property
    def size(self) -> int:
        return len(self.x)

    def jiggle(self, count: int) -> np.ndarray:
        """Tiny random offsets used to separate coincident points."""
        return (self.rng.random(count) - 0.5) * JIGGLE_SCALE


class LinkForce:
    """Pulls linked nodes toward a target separation.

    Strength defaults to 1 / min(degree) of the endpoints, and the
    correction is split between endpoints by relative degree, so hubs move
    less than leaves.
    """

    def __init__(
        self, sources: np.ndarray, targets: np.ndarray, node_count: int, distance: float
    ) -> None:
        # Self-loops exert no net force
        keep = sources != targets
        self.sources = sources[keep]
        self.targets = targets[keep]
        self.distance = distance

        degree = np.bincount(
            np.concatenate([self.sources, self.targets]), minlength=node_count
        ).astype(float)
        src_deg = degree[self.sources]
        tgt_deg = degree[self.targets]
        self.strengths = 1.0 / np.maximum(np.minimum(src_deg, tgt_deg), 1.0)
        self.bias = src_deg / np.maximum(src_deg + tgt_deg, 1.0)

    def apply(self, state: SimState, alpha: float) -> None:
        if len(self.sources) == 0:
            return
        s, t = self.sources, self.targets
        dx = state.x[t] + state.vx[t] - state.x[s] - state.vx[s]
        dy = state.y[t] + state.vy[t] - state.y[s] - state.vy[s]

        zero = (dx == 0) & (dy == 0)
        if zero.any():
            dx[zero] = state.jiggle(int(zero.sum()))
            dy[zero] = state.jiggle(int(zero.sum()))

        length = np.sqrt(dx * dx + dy * dy)
        factor = (length - self.distance) / length * alpha * self.strengths
        dx *= factor
        dy *= factor

        np.add.at(state.vx, t, -dx * self.bias)
        np.add.at(state.vy, t, -dy * self.bias)
        np.add.at(state.vx, s, dx * (1 - self.bias))
        np.add.at(state.vy, s, dy * (1 - self.bias))



class QuadTree:
    """Level-by-level quadtree over node positions.

    Level `k` splits the bounding square into `2**k` cells per side. Each
    level keeps, per cell, the node count and center of mass, so a subtree
    can be looked up by cell key without pointer chasing.
    """

    def __init__(self, x: np.ndarray, y: np.ndarray, depth: int) -> None:
        self.depth = depth
        x0 = float(x.min())
        y0 = float(y.min())
        self.extent = max(float(x.max()) - x0, float(y.max()) - y0) or 1.0
        u = (x - x0) / self.extent
        v = (y - y0) / self.extent

        self.keys: list[np.ndarray] = []
        self.mass: list[np.ndarray] = []
        self.cx: list[np.ndarray] = []
        self.cy: list[np.ndarray] = []
        for level in range(depth + 1):
            res = 1 << level
            ix = np.minimum((u * res).astype(np.int64), res - 1)
            iy = np.minimum((v * res).astype(np.int64), res - 1)
            keys = iy * res + ix
            mass = np.bincount(keys, minlength=res * res).astype(float)
            occupied = mass > 0
            sx = np.bincount(keys, weights=x, minlength=res * res)
            sy = np.bincount(keys, weights=y, minlength=res * res)
            self.keys.append(keys)
            self.mass.append(mass)
            self.cx.append(np.divide(sx, mass, out=np.zeros_like(sx), where=occupied))
            self.cy.append(np.divide(sy, mass, out=np.zeros_like(sy), where=occupied))

    @classmethod
    def for_size(cls, x: np.ndarray, y: np.ndarray) -> "QuadTree":
        # About one node per leaf, one level finer for clustered layouts
        depth = int(np.ceil(np.log2(max(len(x), 2)) / 2)) + 1
        return cls(x, y, min(depth, MAX_TREE_DEPTH))

    def width(self, level: int) -> float:
        return self.extent / (1 << level)

    def children(
        self, level: int, owners: np.ndarray, cells: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Expand (owner, cell) pairs into their non-empty child cells."""
        res = 1 << level
        child_res = res * 2
        base = 2 * (cells // res) * child_res + 2 * (cells % res)
        offsets = np.array([0, 1, child_res, child_res + 1])
        child = (base[:, None] + offsets[None, :]).ravel()
        owner = np.repeat(owners, 4)
        keep = self.mass[level + 1][child] > 0
        return owner[keep], child[keep]


class ManyBodyForce:
    """Mutual repulsion (negative strength) between nodes.

    Up to `exact_limit` nodes every pair is summed directly. Larger graphs
    use a Barnes-Hut approximation: a quadtree cell whose width is small
    against its distance (width / distance < theta) acts as a single body
    at its center of mass.
    """

    def __init__(
        self,
        strength: float,
        distance_min: float = 1.0,
        theta: float = THETA,
        exact_limit: int = EXACT_LIMIT,
    ) -> None:
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.theta2 = theta * theta
        self.exact_limit = exact_limit

    def apply(self, state: SimState, alpha: float) -> None:
        n = state.size
        if n < 2:
            return
        if n <= self.exact_limit:
            self._apply_exact(state, alpha)
        else:
            self._apply_barnes_hut(state, alpha)

    def _apply_exact(self, state: SimState, alpha: float) -> None:
        n = state.size
        for start in range(0, n, BLOCK_SIZE):
            end = min(start + BLOCK_SIZE, n)
            rows = np.arange(start, end)

            # Vector from each node in the block to every other node
            dx = state.x[None, :] - state.x[start:end, None]
            dy = state.y[None, :] - state.y[start:end, None]
            l2 = dx * dx + dy * dy

            coincident = l2 == 0
            coincident[rows - start, rows] = False
            if coincident.any():
                count = int(coincident.sum())
                dx[coincident] = state.jiggle(count)
                dy[coincident] = state.jiggle(count)
                l2[coincident] = dx[coincident] ** 2 + dy[coincident] ** 2

            weight = self.strength * alpha / np.maximum(l2, self.distance_min2)
            weight[rows - start, rows] = 0.0

            state.vx[start:end] += (dx * weight).sum(axis=1)
            state.vy[start:end] += (dy * weight).sum(axis=1)

    def _apply_barnes_hut(self, state: SimState, alpha: float) -> None:
        n = state.size
        tree = QuadTree.for_size(state.x, state.y)
        push_x = np.zeros(n)
        push_y = np.zeros(n)

        # Frontier of (node, cell) pairs still to resolve, starting at the root
        owners = np.arange(n)
        cells = np.zeros(n, dtype=np.int64)
        for level in range(tree.depth + 1):
            if len(owners) == 0:
                break
            leaf = level == tree.depth
            mass = tree.mass[level][cells]
            cx = tree.cx[level][cells]
            cy = tree.cy[level][cells]
            inside = tree.keys[level][owners] == cells

            if leaf:
                # A node does not repel itself: take it out of its own leaf
                own_mass = mass[inside]
                rest = own_mass - 1
                safe = np.maximum(rest, 1)
                cx[inside] = (cx[inside] * own_mass - state.x[owners[inside]]) / safe
                cy[inside] = (cy[inside] * own_mass - state.y[owners[inside]]) / safe
                mass[inside] = rest

            dx = cx - state.x[owners]
            dy = cy - state.y[owners]
            l2 = dx * dx + dy * dy

            if leaf:
                accept = mass > 0
            else:
                accept = ~inside & (l2 * self.theta2 > tree.width(level) ** 2)

            if accept.any():
                near = owners[accept]
                adx = dx[accept]
                ady = dy[accept]
                al2 = l2[accept]
                zero = al2 == 0
                if zero.any():
                    count = int(zero.sum())
                    adx[zero] = state.jiggle(count)
                    ady[zero] = state.jiggle(count)
                    al2[zero] = adx[zero] ** 2 + ady[zero] ** 2
                weight = (
                    self.strength * alpha * mass[accept]
                    / np.maximum(al2, self.distance_min2)
                )
                push_x += np.bincount(near, weights=adx * weight, minlength=n)
                push_y += np.bincount(near, weights=ady * weight, minlength=n)

            if not leaf:
                opened = ~accept
                owners, cells = tree.children(level, owners[opened], cells[opened])

        state.vx += push_x
        state.vy += push_y


class CenterForce:
    """Translates all nodes so their centroid sits on the anchor point."""

    def __init__(self, x: float, y: float, strength: float = 1.0) -> None:
        self.x = x
        self.y = y
        self.strength = strength

    def apply(self, state: SimState, alpha: float) -> None:
        if state.size == 0:
            return
        shift_x = (state.x.mean() - self.x) * self.strength
        shift_y = (state.y.mean() - self.y) * self.strength
        state.x -= shift_x
        state.y -= shift_y




class CollideForce:
    """Pushes apart nodes whose circles (radius + margin) overlap.

    Uses predicted positions (position + velocity) and splits the push by
    area, so larger nodes are displaced less. Candidate pairs come from a
    k-d tree query within twice the largest radius.
    """

    def __init__(self, radii: np.ndarray, strength: float = 0.9) -> None:
        self.radii = radii
        self.strength = strength
        self.max_reach = 2 * float(radii.max()) if len(radii) else 0.0

    def apply(self, state: SimState, alpha: float) -> None:
        if state.size < 2:
            return
        px = state.x + state.vx
        py = state.y + state.vy
        r = self.radii
        r2 = r * r

        tree = cKDTree(np.column_stack([px, py]))
        pairs = tree.query_pairs(self.max_reach, output_type="ndarray")
        if len(pairs) == 0:
            return
        i = pairs[:, 0]
        j = pairs[:, 1]

        dx = px[i] - px[j]
        dy = py[i] - py[j]
        reach = r[i] + r[j]
        l2 = dx * dx + dy * dy
        hit = l2 < reach * reach
        if not hit.any():
            return
        i, j = i[hit], j[hit]
        dx, dy, l2, reach = dx[hit], dy[hit], l2[hit], reach[hit]

        zero = l2 == 0
        if zero.any():
            dx[zero] = state.jiggle(int(zero.sum()))
            dy[zero] = state.jiggle(int(zero.sum()))
            l2[zero] = dx[zero] ** 2 + dy[zero] ** 2

        length = np.sqrt(l2)
        factor = (reach - length) / length * self.strength
        dx *= factor
        dy *= factor

        share = r2[j] / (r2[i] + r2[j])
        np.add.at(state.vx, i, dx * share)
        np.add.at(state.vy, i, dy * share)
        np.add.at(state.vx, j, -dx * (1 - share))
        np.add.at(state.vy, j, -dy * (1 - share))
