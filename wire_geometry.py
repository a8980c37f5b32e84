# wire_geometry.py
import numpy as np
from typing import Iterable, List, Optional, Tuple

from hit import Hit, WireHit

DIR_Z = np.array([0.0, 0.0, 1.0])

# |cos| above which two wire directions count as the same view
SAME_VIEW_COS = 0.99


def perpendicular_direction(start, end) -> np.ndarray:
    """
    Unit vector perpendicular to the wire from start to end, in the (y, z)
    plane, returned as (0, y, z) with a non-negative z component.
    """
    start = np.asarray(start, float)
    end = np.asarray(end, float)
    w = end - start
    norm = np.hypot(w[0], w[1])
    if norm == 0:
        raise ValueError("wire endpoints coincide")
    wy, wz = w / norm

    perp = np.array([0.0, -wz, wy])
    # We want a positive z component in "perp"
    if perp[2] < 0:
        perp *= -1
    return perp


def points_from_wire_hits(
    wire_hits: Iterable[WireHit],
) -> Tuple[List[Hit], Optional[List[np.ndarray]]]:
    """
    Assign wire hits to views and compute each view's direction.

    Collection hits form view 0 along z. The first induction direction seen
    becomes view 1 ("U") and the first one clearly different from it view 2
    ("V"). A hit's transverse coordinate is its wire's start point projected
    on the view direction.

    Returns
    -------
    hits : list of Hit
    dirs : [dirZ, dirU, dirV], or None if fewer than two induction
        directions were seen
    """
    dir_u = None
    dir_v = None
    hits: List[Hit] = []

    for wh in wire_hits:
        r0 = np.asarray(wh.start, float)

        if wh.collection:
            hits.append(Hit(0, float(wh.x), float(r0[1]), float(wh.energy)))
            continue

        perp = perpendicular_direction(wh.start, wh.end)[1:]

        # The "U" direction is the first one we see
        if dir_u is None:
            dir_u = perp
        elif dir_v is None and abs(dir_u @ perp) < SAME_VIEW_COS:
            dir_v = perp

        if abs(dir_u @ perp) > SAME_VIEW_COS:
            hits.append(Hit(1, float(wh.x), float(r0 @ dir_u), float(wh.energy)))
        else:
            hits.append(Hit(2, float(wh.x), float(r0 @ dir_v), float(wh.energy)))

    if dir_u is None or dir_v is None:
        return hits, None

    dirs = [DIR_Z.copy(),
            np.array([0.0, dir_u[0], dir_u[1]]),
            np.array([0.0, dir_v[0], dir_v[1]])]
    return hits, dirs
