"""
Defines the hit and 2D point records fed into the vertex finder.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Hit:
    """
    Represents a single calibrated hit as seen by one view.

    Attributes:
        view (int): view that recorded this hit (0, 1 or 2)
        x (float): drift coordinate, shared by all views
        z (float): transverse coordinate along the view direction
        energy (float): deposited charge, used as a weight
    """
    view: int
    x: float
    z: float
    energy: float = 1.0


@dataclass(frozen=True)
class Pt2D:
    """
    A point in one view's (z, x) plane. Sorting orders points by z.
    """
    x: float
    z: float
    view: int
    energy: float = 1.0

    def __lt__(self, other: "Pt2D") -> bool:
        return self.z < other.z

    @classmethod
    def from_hit(cls, hit: Hit) -> "Pt2D":
        return cls(x=float(hit.x), z=float(hit.z), view=int(hit.view),
                   energy=float(hit.energy))


@dataclass(frozen=True)
class WireHit:
    """
    A hit before view assignment: drift position plus the endpoints of the
    wire that recorded it, in (y, z) detector coordinates.

    Attributes:
        x (float): drift coordinate
        start (tuple): (y, z) of one wire end
        end (tuple): (y, z) of the other wire end
        energy (float): deposited charge
        collection (bool): True for hits on the collection plane
    """
    x: float
    start: Tuple[float, float]
    end: Tuple[float, float]
    energy: float = 1.0
    collection: bool = False
