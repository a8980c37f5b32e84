import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from hit import Hit

C = np.sqrt(3) / 2

# Transverse direction of each view in the plane perpendicular to drift
DIRS = [
    np.array([0.0, 0.0, 1.0]),
    np.array([0.0, 0.5, C]),
    np.array([0.0, -0.5, C]),
]

# Track directions whose projections are well separated in every view
TRACK_DIRS = [
    (1.2, 0.0, 1.0),
    (-1.0, 0.0, 1.0),
    (0.2, 1.0, 1.0),
]

# Distances along each track. With the default windows these keep the true
# vertex at least a twentieth of a bin away from every coarse and zoom bin
# edge, so the tolerances of the end-to-end tests hold with margin.
TRACK_TS = 2.35 + 2.05 * np.arange(15)


def hits_from_tracks(vertex, track_dirs, dirs, ts=TRACK_TS):
    """Exact hits of straight tracks leaving vertex, seen by each view."""
    hits = []
    for d in track_dirs:
        d = np.asarray(d, float)
        for t in ts:
            p = vertex + t * d
            for view, dv in enumerate(dirs):
                hits.append(Hit(view, p[0], p[1] * dv[1] + p[2] * dv[2], 1.0))
    return hits


@pytest.fixture
def three_view_dirs():
    return [d.copy() for d in DIRS]


@pytest.fixture
def true_vertex():
    return np.array([5.37, 12.71, 40.63])


@pytest.fixture
def vertex_hits(true_vertex):
    return hits_from_tracks(true_vertex, TRACK_DIRS, DIRS)


@pytest.fixture
def make_hits():
    return hits_from_tracks
