"""
Delaunay Triangulation
======================

Bowyer-Watson triangulation of node positions.

The resulting edges form a planar mesh in which every node is linked to its
natural geometric neighbours. The underlay uses it as peer topology: it is
connected, sparse (fewer than 3n edges), and favours short links.

Algorithm
---------
1. Start from one triangle of three non-collinear input points, plus three
   "ghost" triangles that cover the outside of it. A ghost triangle joins a
   hull edge to a single vertex at infinity.
2. Insert the remaining points one by one. For each point, remove all
   triangles in conflict with it and re-triangulate the hole by connecting
   the point to every boundary edge of the hole.

A solid triangle conflicts with a point strictly inside its circumcircle. A
ghost triangle conflicts with a point strictly outside its hull edge, or
lying on the open edge itself. Hull edges therefore survive insertion, no
matter how thin the point set is.

Predicates
----------
Orientation and in-circle tests are evaluated in floating point first. When
the result is too close to zero to trust, they are recomputed exactly on
`Fraction` values, which represent every float without rounding.

Exact duplicate points are ignored. A point set that is collinear, or has
fewer than three distinct points, has no triangulation.
"""

from __future__ import annotations

from collections.abc import Sequence
from fractions import Fraction
from typing import Final, TypeVar

from p2psim.types import TriangulationError

Point = tuple[float, float]
"""An (x, y) coordinate pair."""

Triangle = tuple[int, int, int]
"""Three indices into the input point sequence, counter-clockwise."""

GHOST: Final = -1
"""Index of the vertex at infinity. Always the last index of a ghost triangle."""

_FILTER: Final = 1e-9
"""Relative size below which a floating point determinant is recomputed exactly."""

N = TypeVar("N", float, Fraction)


def _sign(value: float | Fraction) -> int:
    return (value > 0) - (value < 0)


def _exact(point: Point) -> tuple[Fraction, Fraction]:
    return Fraction(point[0]), Fraction(point[1])


def _orientation_terms(a: Sequence[N], b: Sequence[N], c: Sequence[N]) -> tuple[N, N]:
    """Twice the signed area of abc, and the magnitude of its two terms."""
    left = (b[0] - a[0]) * (c[1] - a[1])
    right = (b[1] - a[1]) * (c[0] - a[0])
    return left - right, abs(left) + abs(right)


def _orientation(a: Point, b: Point, c: Point) -> int:
    """+1 if abc turns counter-clockwise, -1 if clockwise, 0 if collinear."""
    det, magnitude = _orientation_terms(a, b, c)
    if abs(det) > _FILTER * magnitude:
        return _sign(det)
    return _sign(_orientation_terms(_exact(a), _exact(b), _exact(c))[0])


def _in_circle_terms(
    a: Sequence[N], b: Sequence[N], c: Sequence[N], d: Sequence[N]
) -> tuple[N, N]:
    """In-circle determinant of d against abc, and its permanent."""
    adx, ady = a[0] - d[0], a[1] - d[1]
    bdx, bdy = b[0] - d[0], b[1] - d[1]
    cdx, cdy = c[0] - d[0], c[1] - d[1]
    alift = adx * adx + ady * ady
    blift = bdx * bdx + bdy * bdy
    clift = cdx * cdx + cdy * cdy
    det = (
        alift * (bdx * cdy - cdx * bdy)
        + blift * (cdx * ady - adx * cdy)
        + clift * (adx * bdy - bdx * ady)
    )
    permanent = (
        alift * (abs(bdx * cdy) + abs(cdx * bdy))
        + blift * (abs(cdx * ady) + abs(adx * cdy))
        + clift * (abs(adx * bdy) + abs(bdx * ady))
    )
    return det, permanent


def _in_circumcircle(a: Point, b: Point, c: Point, d: Point) -> bool:
    """Whether d lies strictly inside the circumcircle of counter-clockwise abc."""
    det, permanent = _in_circle_terms(a, b, c, d)
    if abs(det) > _FILTER * permanent:
        return det > 0
    return _in_circle_terms(_exact(a), _exact(b), _exact(c), _exact(d))[0] > 0


def _beyond_hull_edge(u: Point, v: Point, p: Point) -> bool:
    """Whether p conflicts with the ghost triangle on hull edge uv."""
    side = _orientation(u, v, p)
    if side != 0:
        return side > 0
    # On the supporting line: only the open segment conflicts.
    (ux, uy), (vx, vy), (px, py) = _exact(u), _exact(v), _exact(p)
    return (px - ux) * (vx - ux) + (py - uy) * (vy - uy) > 0 and (
        (px - vx) * (ux - vx) + (py - vy) * (uy - vy) > 0
    )


def _in_conflict(vertices: Sequence[Point], triangle: Triangle, point: Point) -> bool:
    i, j, k = triangle
    if k == GHOST:
        return _beyond_hull_edge(vertices[i], vertices[j], point)
    return _in_circumcircle(vertices[i], vertices[j], vertices[k], point)


def _ghost_last(triangle: Triangle) -> Triangle:
    """Rotate a triangle so that the ghost vertex, if any, comes last."""
    i, j, k = triangle
    if i == GHOST:
        return (j, k, i)
    if j == GHOST:
        return (k, i, j)
    return triangle


def triangulate(points: Sequence[Point]) -> list[Triangle]:
    """
    Compute the Delaunay triangulation of `points`.

    Args:
        points: Input coordinates.

    Returns:
        Counter-clockwise triangles as index triples into `points`.

    Raises:
        TriangulationError: If the points admit no triangulation.
    """
    vertices: list[Point] = [(float(p[0]), float(p[1])) for p in points]

    # Keep the first occurrence of every distinct point.
    unique: dict[Point, int] = {}
    for index, vertex in enumerate(vertices):
        unique.setdefault(vertex, index)
    if len(unique) < 3:
        raise TriangulationError(f"No triangulation exists for {len(unique)} distinct points")

    order = list(unique.values())
    a, b = order[0], order[1]
    c = next((i for i in order[2:] if _orientation(vertices[a], vertices[b], vertices[i])), None)
    if c is None:
        raise TriangulationError("No triangulation exists for collinear points")
    if _orientation(vertices[a], vertices[b], vertices[c]) < 0:
        a, b = b, a

    triangles: list[Triangle] = [(a, b, c), (b, a, GHOST), (c, b, GHOST), (a, c, GHOST)]

    for index in order[2:]:
        if index == c:
            continue
        point = vertices[index]
        bad = [t for t in triangles if _in_conflict(vertices, t, point)]

        # Boundary of the cavity: directed edges whose twin is not in the cavity.
        edges = [(t[n], t[(n + 1) % 3]) for t in bad for n in range(3)]
        inside = set(edges)
        bad_set = set(bad)
        triangles = [t for t in triangles if t not in bad_set]
        triangles += [_ghost_last((i, j, index)) for i, j in edges if (j, i) not in inside]

    return [t for t in triangles if t[2] != GHOST]


def triangulation_edges(points: Sequence[Point]) -> set[tuple[int, int]]:
    """
    Undirected edges of the Delaunay triangulation.

    Returns:
        Index pairs (i, j) with i < j.
    """
    edges: set[tuple[int, int]] = set()
    for a, b, c in triangulate(points):
        for i, j in ((a, b), (b, c), (c, a)):
            edges.add((min(i, j), max(i, j)))
    return edges
