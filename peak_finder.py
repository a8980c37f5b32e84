# peak_finder.py
import logging
import numpy as np
from typing import Optional, Sequence

from heat_map import HeatMap

logger = logging.getLogger(__name__)


def direction_matrix(dirs: Sequence) -> np.ndarray:
    """2x2 matrix of the (y, z) components of the first two view directions."""
    d0 = np.asarray(dirs[0], float)
    d1 = np.asarray(dirs[1], float)
    return np.array([[d0[1], d0[2]],
                     [d1[1], d1[2]]])


def is_singular(dirs: Sequence, tol: float = 1e-12) -> bool:
    M = direction_matrix(dirs)
    return abs(M[0, 0] * M[1, 1] - M[1, 0] * M[0, 1]) <= tol


def find_peak_3d(maps: Sequence[HeatMap],
                 dirs: Sequence) -> Optional[np.ndarray]:
    """
    Find the 3D point where the three views' heat maps agree best.

    Every pair of transverse bins (iz, iu) of views 0 and 1 fixes a point
    (y, z) in the plane perpendicular to drift, and hence the transverse
    bin iv it falls in for view 2. The score of a drift bin ix is
    h0[iz, ix] + h1[iu, ix] + h2[iv, ix]; the best score over all
    consistent combinations wins. Combinations whose row maxima cannot
    beat the current best are not scanned.

    The maps must share the same drift binning.

    Parameters
    ----------
    maps : sequence of three HeatMap
    dirs : sequence of three (x, y, z) unit vectors, one per view

    Returns
    -------
    np.ndarray or None
        (x, y, z) of the best point, or None when the direction matrix is
        singular or no bin carries any weight.
    """
    if len(maps) != 3 or len(dirs) != 3:
        raise ValueError("find_peak_3d needs exactly three maps and directions")

    nx = maps[0].nx
    if any(hm.nx != nx for hm in maps):
        raise ValueError("heat maps must share the same drift binning")

    if is_singular(dirs):
        logger.debug("Singular view directions, no peak")
        return None

    Minv = np.linalg.inv(direction_matrix(dirs))
    d2 = np.asarray(dirs[2], float)

    h0, h1, h2 = (hm.map for hm in maps)

    # Best possible contribution of each row, for pruning
    col_max = [hm.row_max() for hm in maps]

    us = maps[1].z_bin_center(np.arange(maps[1].nz))

    best_score = 0.0
    best_r = None

    for iz in range(maps[0].nz):
        z = maps[0].z_bin_center(iz)

        # r.d0 = z && r.d1 = u
        ys = Minv[0, 0] * z + Minv[0, 1] * us
        zs = Minv[1, 0] * z + Minv[1, 1] * us
        ivs = maps[2].z_to_bins(ys * d2[1] + zs * d2[2])

        valid = ivs >= 0
        bounds = np.full(len(us), -np.inf)
        bounds[valid] = col_max[0][iz] + col_max[1][valid] + col_max[2][ivs[valid]]

        for iu in np.flatnonzero(valid):
            # Even if the maxes were all at the same x we couldn't beat the record
            if bounds[iu] <= best_score:
                continue

            iv = ivs[iu]
            score = h0[iz, 1:nx - 1] + h1[iu, 1:nx - 1] + h2[iv, 1:nx - 1]
            if len(score) == 0:
                continue

            k = int(np.argmax(score))
            if score[k] > best_score:
                best_score = float(score[k])
                best_r = np.array([maps[0].x_bin_center(k + 1), ys[iu], zs[iu]])

    if best_r is None:
        logger.debug("No populated bins, no peak")
    else:
        logger.debug("Peak score %g at %s", best_score, best_r)
    return best_r
