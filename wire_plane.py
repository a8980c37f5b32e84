# wire_plane.py
import math
import numpy as np
from typing import List, Optional

from hit import WireHit
from wire_geometry import perpendicular_direction


class WirePlane:
    """
    Models a readout plane of parallel wires in a TPC.

    A deposit at (x, y, z) is read by the nearest wire; its drift position
    is smeared by the plane's resolution.

    Attributes:
        id          : plane identifier
        wire_angle  : wire angle from the vertical (y) axis, degrees
        pitch       : spacing between wires
        resolution  : drift resolution (Gaussian sigma for smearing)
        collection  : True for the collection plane
        half_length : half length used for the wire endpoints
        direction   : (0, y, z) unit vector perpendicular to the wires
        hits        : list of WireHit objects recorded by this plane
    """
    def __init__(self, plane_id: int, wire_angle: float, pitch: float = 0.3,
                 resolution: float = 0.05, collection: bool = False,
                 half_length: float = 500.0):
        self.id = plane_id
        self.wire_angle = wire_angle
        self.pitch = pitch
        self.resolution = resolution
        self.collection = collection
        self.half_length = half_length

        a = math.radians(wire_angle)
        self.wire_dir = np.array([math.cos(a), math.sin(a)])  # (y, z)
        self.direction = perpendicular_direction((0.0, 0.0), self.wire_dir)

        self.hits: List[WireHit] = []

    def clear(self):
        """Forget all recorded hits, e.g. between events."""
        self.hits = []

    def wire_coordinate(self, point) -> float:
        """Transverse position of the wire nearest to point."""
        s = point[1] * self.direction[1] + point[2] * self.direction[2]
        return round(s / self.pitch) * self.pitch

    def detect_hit(self, point, energy: float,
                   rng: Optional[np.random.Generator] = None) -> WireHit:
        """
        Record the deposit at point (x, y, z) on the nearest wire.

        Returns the new WireHit, which is also stored on the plane.
        """
        if rng is None:
            rng = np.random.default_rng()

        s = self.wire_coordinate(point)
        centre = s * self.direction[1:]
        start = centre - self.half_length * self.wire_dir
        end = centre + self.half_length * self.wire_dir

        new_hit = WireHit(
            x=float(point[0] + rng.normal(0, self.resolution)),
            start=(float(start[0]), float(start[1])),
            end=(float(end[0]), float(end[1])),
            energy=float(energy),
            collection=self.collection,
        )
        self.hits.append(new_hit)
        return new_hit


def default_planes(pitch: float = 0.3, resolution: float = 0.05,
                   induction_angle: float = 60.0) -> List[WirePlane]:
    """Two induction planes at +/- induction_angle and a vertical collection plane."""
    return [
        WirePlane(0, +induction_angle, pitch, resolution),
        WirePlane(1, -induction_angle, pitch, resolution),
        WirePlane(2, 0.0, pitch, resolution, collection=True),
    ]
