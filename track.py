# track.py
import numpy as np
from typing import Optional

# Energy deposited per unit length, MeV/cm for a MIP in argon
DEDX_MIP = 2.1


class Track:
    """
    A straight prong leaving an interaction vertex.

    Attributes:
        id        : track identifier
        vertex    : (x, y, z) start point, x being the drift coordinate
        direction : unit vector of travel
        length    : track length
        dedx      : deposited energy per unit length
    """
    def __init__(self, track_id: int, vertex: np.ndarray, direction: np.ndarray,
                 length: float, dedx: float = DEDX_MIP):
        self.id = track_id
        self.vertex = np.asarray(vertex, float)
        direction = np.asarray(direction, float)
        self.direction = direction / np.linalg.norm(direction)
        self.length = length
        self.dedx = dedx

    def end_point(self) -> np.ndarray:
        return self.vertex + self.length * self.direction

    def sample_points(self, step: float = 1.0, start: float = 0.5) -> np.ndarray:
        """
        Points along the track every `step`, beginning `start` away from
        the vertex. Returns an (N, 3) array.
        """
        ts = np.arange(start, self.length, step)
        return self.vertex + ts[:, None] * self.direction


def create_random_track(track_id: int, vertex: np.ndarray,
                        rng: Optional[np.random.Generator] = None,
                        min_length: float = 10.0,
                        max_length: float = 80.0) -> Track:
    if rng is None:
        rng = np.random.default_rng()

    length = rng.uniform(min_length, max_length)
    theta = rng.uniform(0, np.pi / 3)   # forward-going along z
    phi = rng.uniform(0, 2 * np.pi)

    direction = np.array([
        np.sin(theta) * np.cos(phi),
        np.sin(theta) * np.sin(phi),
        np.cos(theta),
    ])

    dedx = DEDX_MIP * rng.uniform(0.8, 1.5)
    return Track(track_id, vertex, direction, length, dedx)
