"""Coxeter diagrams and the reflection groups they generate.

A diagram with ``n`` nodes describes ``n`` mirrors in ``R^n``.  Two
mirrors joined by an edge labelled ``m`` meet at an angle of ``pi / m``;
unjoined mirrors are orthogonal (``m = 2``).  Each node may carry a
*ring value*, twice the distance from the Wythoff seed point to that
mirror.

Diagrams are usually written in the linear notation, e.g. ``"x4o3o"``
for the cube:

* single-letter nodes (``o`` unringed, ``x`` unit, ``q`` sqrt 2, ...)
* explicit values in parentheses, ``(1.5)``
* integer or rational edge labels, ``5`` or ``5/2``
* virtual nodes ``*a`` (first node) and ``*-a`` (last node) that refer
  back to existing nodes, for branched or cyclic diagrams
* whitespace between tokens
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from fractions import Fraction

import numpy as np
from scipy.linalg import LinAlgError, cholesky, eigvalsh, solve_triangular
from scipy.spatial import cKDTree

from hedron._constants import NODE_VALUES
from hedron.config import GeometryOptions, resolve_options
from hedron.errors import InfiniteGroup, InvalidDiagram, TooLarge
from hedron.geometry import _scale

logger = logging.getLogger(__name__)

_EXCEPTIONAL_ORDERS = {
    "E6": 51_840,
    "E7": 2_903_040,
    "E8": 696_729_600,
    "F4": 1_152,
    "H3": 120,
    "H4": 14_400,
}

# Smallest Gram eigenvalue still counted as positive; affine diagrams
# have an exact zero that rounding can push either way.
_SPHERICAL_TOL = 1e-9


def _as_order(value: int | float | Fraction) -> Fraction:
    try:
        order = Fraction(value).limit_denominator(1000)
    except (TypeError, ValueError) as exc:
        raise InvalidDiagram(f"invalid edge label {value!r}") from exc
    return order


@dataclass(frozen=True)
class CoxeterDiagram:
    """A Coxeter diagram with optional ring values.

    Attributes:
        orders: Symmetric matrix of mirror orders as a tuple of rows.
            Diagonal entries are 1; orthogonal mirrors have order 2.
            Entries may be integers or :class:`~fractions.Fraction`.
        rings: Ring value of each node; 0 marks an unringed node.
    """

    orders: tuple[tuple[Fraction, ...], ...]
    rings: tuple[float, ...]

    def __post_init__(self) -> None:
        n = len(self.orders)
        if n == 0:
            raise InvalidDiagram("a diagram needs at least one node")
        rows = tuple(tuple(_as_order(m) for m in row) for row in self.orders)
        if any(len(row) != n for row in rows):
            raise InvalidDiagram("the order matrix must be square")
        if len(self.rings) != n:
            raise InvalidDiagram(
                f"{len(self.rings)} ring values for {n} nodes"
            )
        for i in range(n):
            if rows[i][i] != 1:
                raise InvalidDiagram(f"node {i} must have order 1 with itself")
            for j in range(i + 1, n):
                if rows[i][j] != rows[j][i]:
                    raise InvalidDiagram(
                        f"orders between nodes {i} and {j} are not symmetric"
                    )
                if rows[i][j] <= 1:
                    raise InvalidDiagram(
                        f"invalid edge {rows[i][j]} between nodes {i} and {j}"
                    )
        object.__setattr__(self, "orders", rows)
        object.__setattr__(self, "rings", tuple(float(r) for r in self.rings))

    @classmethod
    def linear(
        cls,
        edges: list[int | Fraction],
        rings: list[float],
    ) -> CoxeterDiagram:
        """A path diagram whose consecutive nodes are joined by *edges*."""
        n = len(edges) + 1
        orders = [[Fraction(2)] * n for _ in range(n)]
        for i in range(n):
            orders[i][i] = Fraction(1)
        for i, m in enumerate(edges):
            orders[i][i + 1] = orders[i + 1][i] = _as_order(m)
        return cls(tuple(tuple(row) for row in orders), tuple(rings))

    @classmethod
    def parse(cls, text: str) -> CoxeterDiagram:
        """Parse the linear notation, e.g. ``"x3o3o"`` or ``"x3o3o *b3o"``.

        Raises:
            InvalidDiagram: With the position of the first problem found.
        """
        return parse_diagram(text)

    # ---- Structure ----

    @property
    def rank(self) -> int:
        """Number of nodes, which is also the rank of its Wythoffians."""
        return len(self.orders)

    def is_integral(self) -> bool:
        """Whether every edge label is an integer."""
        return all(m.denominator == 1 for row in self.orders for m in row)

    def ringed(self) -> list[int]:
        """Indices of the ringed nodes."""
        return [i for i, r in enumerate(self.rings) if r != 0.0]

    def neighbours(self, node: int) -> list[int]:
        return [
            j for j, m in enumerate(self.orders[node])
            if j != node and m != 2
        ]

    def components(self) -> list[list[int]]:
        """Connected components, each sorted, in order of first node."""
        seen: set[int] = set()
        result = []
        for start in range(self.rank):
            if start in seen:
                continue
            component = []
            stack = [start]
            seen.add(start)
            while stack:
                node = stack.pop()
                component.append(node)
                for j in self.neighbours(node):
                    if j not in seen:
                        seen.add(j)
                        stack.append(j)
            result.append(sorted(component))
        return result

    def subdiagram(self, nodes: list[int]) -> CoxeterDiagram:
        """The diagram induced on a subset of nodes, in the given order."""
        return CoxeterDiagram(
            tuple(tuple(self.orders[i][j] for j in nodes) for i in nodes),
            tuple(self.rings[i] for i in nodes),
        )

    def is_minimal(self) -> bool:
        """Whether every connected component carries a ringed node."""
        return all(
            any(self.rings[i] != 0.0 for i in component)
            for component in self.components()
        )

    # ---- Classification ----

    def classify(self) -> list[str | None]:
        """Name the finite type of each component.

        Rational labels are classified by their numerators, which names
        the group correctly whenever the result is a known type.  Star
        diagrams such as ``x5/2o5o`` match no type this way even though
        they generate a finite group; see :meth:`is_finite`.

        Returns:
            One name per component, such as ``"A3"``, ``"D4"``, ``"H3"``
            or ``"I2(5)"``; ``None`` marks a component of no recognised
            finite type.
        """
        return [self._classify_component(c) for c in self.components()]

    def _classify_component(self, nodes: list[int]) -> str | None:
        n = len(nodes)
        if n == 1:
            return "A1"
        label = {
            (i, j): self.orders[i][j].numerator
            for i in nodes for j in self.neighbours(i)
        }
        if len(label) // 2 != n - 1:
            return None
        degree = {i: len(self.neighbours(i)) for i in nodes}
        if max(degree.values()) > 3:
            return None
        branches = [i for i in nodes if degree[i] == 3]

        if branches:
            if len(branches) > 1 or any(m != 3 for m in label.values()):
                return None
            centre = branches[0]
            arms = []
            for start in self.neighbours(centre):
                length, prev, node = 1, centre, start
                while degree[node] == 2:
                    prev, node = node, next(
                        j for j in self.neighbours(node) if j != prev
                    )
                    length += 1
                arms.append(length)
            arms.sort()
            if arms[:2] == [1, 1]:
                return f"D{n}"
            return {(1, 2, 2): "E6", (1, 2, 3): "E7", (1, 2, 4): "E8"}.get(
                tuple(arms)
            )

        # A path: walk it from one end.
        end = next(i for i in nodes if degree[i] == 1)
        path = [end]
        while len(path) < n:
            path.append(next(
                j for j in self.neighbours(path[-1])
                if len(path) < 2 or j != path[-2]
            ))
        labels = [label[(a, b)] for a, b in zip(path, path[1:])]
        special = [k for k, m in enumerate(labels) if m != 3]
        if not special:
            return f"A{n}"
        if n == 2:
            return f"I2({labels[0]})"
        if len(special) > 1:
            return None
        k = special[0]
        m = labels[k]
        at_end = k in (0, n - 2)
        if m == 4 and at_end:
            return f"B{n}"
        if m == 4 and n == 4:
            return "F4"
        if m == 5 and at_end and n in (3, 4):
            return f"H{n}"
        return None

    def is_spherical(self) -> bool:
        """Whether the Gram matrix is positive definite."""
        return bool(eigvalsh(self.gram_matrix())[0] > _SPHERICAL_TOL)

    def is_finite(self) -> bool:
        """Whether the mirrors fit in spherical space.

        For integer labels this is exactly finiteness of the group.  A
        rational diagram that passes may still generate a dense group,
        which :func:`generate_group` stops at ``max_group_order``.
        """
        return self.is_spherical()

    def group_order(self) -> int | None:
        """Order predicted from the component types, or ``None``."""
        total = 1
        for name in self.classify():
            if name is None:
                return None
            total *= _type_order(name)
        return total

    # ---- Geometry ----

    def gram_matrix(self) -> np.ndarray:
        """The matrix ``G_ij = -cos(pi / m_ij)`` of mirror normal products."""
        m = np.array([[float(x) for x in row] for row in self.orders])
        return -np.cos(np.pi / m)

    def mirror_normals(self) -> np.ndarray:
        """Unit mirror normals as rows, from the Cholesky factor of the Gram matrix.

        Raises:
            InfiniteGroup: If the Gram matrix is not positive definite.
        """
        if not self.is_spherical():
            raise InfiniteGroup("the mirrors do not fit in spherical space")
        try:
            return cholesky(self.gram_matrix(), lower=True)
        except LinAlgError as exc:
            raise InfiniteGroup(
                "the mirrors do not fit in spherical space"
            ) from exc

    def seed_point(self, values: np.ndarray | None = None) -> np.ndarray:
        """The point at distance ``value / 2`` from each mirror.

        Args:
            values: Distances (doubled) to use instead of the ring
                values.
        """
        rhs = np.asarray(self.rings if values is None else values, dtype=float)
        return solve_triangular(self.mirror_normals(), rhs / 2.0, lower=True)

    def reflections(self) -> np.ndarray:
        """Reflection matrices, shape ``(n, n, n)``."""
        normals = self.mirror_normals()
        eye = np.eye(self.rank)
        return np.stack([eye - 2.0 * np.outer(v, v) for v in normals])

    def __str__(self) -> str:
        symbols = {value: key for key, value in NODE_VALUES.items()}
        parts = []
        for i, r in enumerate(self.rings):
            parts.append(symbols.get(r, f"({r:g})"))
            if i + 1 < self.rank:
                m = self.orders[i][i + 1]
                parts.append("" if m == 2 else str(m))
        extra = [
            f"*{chr(97 + i)}{self.orders[i][j]}*{chr(97 + j)}"
            for i in range(self.rank) for j in range(i + 2, self.rank)
            if self.orders[i][j] != 2
        ]
        return " ".join(["".join(parts), *extra])


def _type_order(name: str) -> int:
    if name in _EXCEPTIONAL_ORDERS:
        return _EXCEPTIONAL_ORDERS[name]
    if name.startswith("I2("):
        return 2 * int(name[3:-1])
    family, n = name[0], int(name[1:])
    if family == "A":
        return math.factorial(n + 1)
    if family == "B":
        return 2**n * math.factorial(n)
    if family == "D":
        return 2 ** (n - 1) * math.factorial(n)
    raise ValueError(f"unknown Coxeter type {name!r}")


# ---- Linear notation ----

def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _read_node(
    text: str, pos: int, values: list[float],
) -> tuple[tuple[bool, int], int]:
    """Read one node, appending real nodes to *values*.

    Returns:
        A reference ``(from_end, index)`` to the node and the position
        after it.
    """
    if pos >= len(text):
        raise InvalidDiagram("diagram ended unexpectedly", pos=len(text))
    c = text[pos]

    if c == "(":
        close = text.find(")", pos + 1)
        if close == -1:
            raise InvalidDiagram("mismatched parenthesis", pos=len(text))
        try:
            value = float(text[pos + 1:close])
        except ValueError:
            raise InvalidDiagram("could not parse node value", pos=close - 1) from None
        if math.isnan(value):
            raise InvalidDiagram("invalid symbol", pos=close - 1)
        values.append(value)
        return (False, len(values) - 1), close + 1

    if c == "*":
        pos += 1
        from_end = pos < len(text) and text[pos] == "-"
        if from_end:
            pos += 1
        if pos >= len(text):
            raise InvalidDiagram("diagram ended unexpectedly", pos=len(text))
        letter = text[pos]
        if not "a" <= letter <= "z":
            raise InvalidDiagram("invalid virtual node", pos=pos)
        return (from_end, ord(letter) - ord("a")), pos + 1

    if c == "s":
        raise InvalidDiagram("snub nodes are not supported", pos=pos)
    if c not in NODE_VALUES:
        raise InvalidDiagram("invalid symbol", pos=pos)
    values.append(NODE_VALUES[c])
    return (False, len(values) - 1), pos + 1


def _read_edge(text: str, pos: int) -> tuple[Fraction | None, int]:
    """Read an integer or ``p/q`` edge label, if one starts at *pos*."""
    if pos >= len(text) or not text[pos].isdigit():
        return None, pos
    start = pos
    numerator = None
    while True:
        if pos >= len(text):
            raise InvalidDiagram("diagram ended unexpectedly", pos=len(text))
        c = text[pos]
        if c == "/" and numerator is None:
            if pos == start:
                raise InvalidDiagram("invalid symbol", pos=pos)
            numerator = int(text[start:pos])
            start = pos + 1
        elif c.isdigit():
            pass
        elif c in "(*" or c.isspace() or c.isalpha():
            if pos == start:
                raise InvalidDiagram("invalid symbol", pos=pos)
            last = int(text[start:pos])
            num, den = (last, 1) if numerator is None else (numerator, last)
            if not (num > 1 and den != 0 and den < num):
                raise InvalidDiagram(f"invalid edge {num}/{den}", pos=pos - 1)
            return Fraction(num, den), pos
        else:
            raise InvalidDiagram("invalid symbol", pos=pos)
        pos += 1


def parse_diagram(text: str) -> CoxeterDiagram:
    """Parse a Coxeter diagram in linear notation.

    The diagram alternates nodes and optional edge labels; a node
    directly followed by another node leaves them orthogonal.  Edges
    labelled 2 are dropped.

    Raises:
        InvalidDiagram: On any malformed input, with the position of the
            offending character.
    """
    values: list[float] = []
    pending: list[tuple[tuple[bool, int], tuple[bool, int], Fraction]] = []
    previous = None
    edge: Fraction | None = None
    pos = 0

    while True:
        pos = _skip_whitespace(text, pos)
        node, pos = _read_node(text, pos, values)
        if previous is not None and edge is not None:
            pending.append((previous, node, edge))
        previous = node
        pos = _skip_whitespace(text, pos)
        if pos >= len(text):
            break
        edge, pos = _read_edge(text, pos)

    n = len(values)
    if n == 0:
        raise InvalidDiagram("a diagram needs at least one node", pos=0)

    def resolve(ref: tuple[bool, int]) -> int:
        from_end, idx = ref
        node = n - 1 - idx if from_end else idx
        if not 0 <= node < n:
            raise InvalidDiagram(f"virtual node refers to missing node {idx}")
        return node

    orders = [[Fraction(2)] * n for _ in range(n)]
    for i in range(n):
        orders[i][i] = Fraction(1)
    for first, other, m in pending:
        a, b = resolve(first), resolve(other)
        if m == 2:
            continue
        if a == b:
            raise InvalidDiagram(f"edge joins node {a} to itself")
        if orders[a][b] != 2:
            raise InvalidDiagram(f"repeat edge between {min(a, b)} and {max(a, b)}")
        orders[a][b] = orders[b][a] = m

    return CoxeterDiagram(tuple(tuple(row) for row in orders), tuple(values))


# ---- Group generation ----

def check_finite(
    diagram: CoxeterDiagram, options: GeometryOptions | None = None,
) -> int | None:
    """Predict the group order, failing fast on unusable diagrams.

    Returns:
        The predicted order, or ``None`` for a spherical diagram of no
        recognised type, whose order is only known once generated.

    Raises:
        InfiniteGroup: If the mirrors do not fit in spherical space.
        TooLarge: If the order exceeds ``options.max_group_order``.
    """
    opts = resolve_options(options)
    if not diagram.is_finite():
        names = diagram.classify()
        raise InfiniteGroup(
            f"diagram components {names} do not all generate finite groups"
        )
    order = diagram.group_order()
    if order is None:
        logger.debug("no known type for %s; order found by enumeration", diagram)
        return None
    if order > opts.max_group_order:
        raise TooLarge(order, opts.max_group_order)
    return order


def _dedupe_in_order(points: np.ndarray, tol: float) -> np.ndarray:
    """Indices of the first occurrence of each point, within *tol*."""
    if len(points) == 0:
        return np.zeros(0, dtype=int)
    keep = np.ones(len(points), dtype=bool)
    for i, j in cKDTree(points).query_pairs(r=tol):
        keep[max(i, j)] = False
    return np.flatnonzero(keep)


def _expand(
    generators: np.ndarray, layer: np.ndarray, reference: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Left-multiply each layer element by each generator.

    Returns:
        Candidate matrices, shape ``(len(layer) * n_gen, n, n)``, and
        their images of *reference*.
    """
    products = np.einsum("gij,ljk->lgik", generators, layer)
    products = products.reshape(-1, *layer.shape[1:])
    return products, products @ reference


def generate_group(
    diagram: CoxeterDiagram, options: GeometryOptions | None = None,
) -> np.ndarray:
    """Enumerate every element of the reflection group.

    Elements are found layer by layer by word length.  An element is
    identified by where it sends a point inside the fundamental chamber,
    which only the identity fixes.  Because a reflection changes word
    length by exactly one, candidates of a new layer only need comparing
    with each other and with the layer two steps back.

    Args:
        diagram: The diagram; ring values are ignored.
        options: Geometry options.  With ``workers > 1`` each layer is
            expanded in chunks on a thread pool; chunk results are
            merged in order, so the output does not depend on the
            number of workers.

    Returns:
        Array of shape ``(order, n, n)``, starting with the identity.

    Raises:
        InfiniteGroup: If the group is infinite.
        TooLarge: If the group order exceeds ``options.max_group_order``.
    """
    opts = resolve_options(options)
    expected = check_finite(diagram, opts)
    n = diagram.rank
    generators = diagram.reflections()
    reference = diagram.seed_point(np.sqrt(np.arange(2.0, n + 2.0)))
    tol = opts.tolerance(_scale(reference[None, :]))

    layers = [np.eye(n)[None, :, :]]
    images = [reference[None, :]]
    total = 1
    executor = ThreadPoolExecutor(opts.workers) if opts.workers > 1 else None
    try:
        while True:
            current = layers[-1]
            if executor is None:
                products, new_images = _expand(generators, current, reference)
            else:
                chunks = np.array_split(current, min(opts.workers, len(current)))
                parts = list(executor.map(
                    lambda chunk: _expand(generators, chunk, reference), chunks,
                ))
                products = np.concatenate([p for p, _ in parts])
                new_images = np.concatenate([im for _, im in parts])

            if len(images) >= 2:
                dist, _ = cKDTree(images[-2]).query(new_images, k=1)
                fresh = dist > tol
                products, new_images = products[fresh], new_images[fresh]
            keep = _dedupe_in_order(new_images, tol)
            products, new_images = products[keep], new_images[keep]
            if len(products) == 0:
                break

            total += len(products)
            logger.debug(
                "layer %d: %d elements (%d total)", len(layers), len(products), total,
            )
            if total > opts.max_group_order:
                raise TooLarge(total, opts.max_group_order)
            layers.append(products)
            images.append(new_images)
    finally:
        if executor is not None:
            executor.shutdown()

    group = np.concatenate(layers)
    if expected is not None and len(group) != expected:
        logger.warning(
            "enumerated %d group elements, expected %d", len(group), expected,
        )
    logger.info("generated group of order %d in %d layers", len(group), len(layers))
    return group

