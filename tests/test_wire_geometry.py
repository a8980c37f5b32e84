import numpy as np
import pytest

from hit import WireHit
from wire_geometry import perpendicular_direction, points_from_wire_hits
from wire_plane import WirePlane, default_planes

C = np.sqrt(3) / 2


def test_vertical_wire_reads_z():
    assert np.allclose(perpendicular_direction((0, 0), (1, 0)), [0, 0, 1])


def test_inclined_wire():
    d = perpendicular_direction((0, 0), (0.5, C))
    assert np.allclose(d, [0, -C, 0.5])
    assert np.isclose(np.linalg.norm(d), 1.0)


def test_direction_independent_of_wire_orientation():
    a = perpendicular_direction((0, 0), (0.5, C))
    b = perpendicular_direction((0.5, C), (0, 0))
    assert np.allclose(a, b)
    assert a[2] >= 0


def test_coincident_endpoints():
    with pytest.raises(ValueError):
        perpendicular_direction((1, 2), (1, 2))


def test_points_from_wire_hits():
    planes = default_planes(pitch=0.5, resolution=0.0)
    rng = np.random.default_rng(0)
    point = np.array([12.0, 3.0, 40.0])

    wire_hits = [plane.detect_hit(point, 2.0, rng) for plane in planes]
    hits, dirs = points_from_wire_hits(wire_hits)

    assert [h.view for h in hits] == [1, 2, 0]
    assert np.allclose(dirs[0], [0, 0, 1])
    assert np.allclose(dirs[1], planes[0].direction)
    assert np.allclose(dirs[2], planes[1].direction)

    for h, plane in zip(hits, planes):
        assert h.x == 12.0
        assert h.energy == 2.0
        assert np.isclose(h.z, plane.wire_coordinate(point))


def test_missing_induction_view():
    wire_hits = [
        WireHit(1.0, (0.0, 5.0), (1.0, 5.0), collection=True),
        WireHit(1.0, (0.0, 0.0), (0.5, C)),
    ]
    hits, dirs = points_from_wire_hits(wire_hits)

    assert dirs is None
    assert [h.view for h in hits] == [0, 1]


def test_wire_plane_records_hits():
    plane = WirePlane(0, 0.0, pitch=1.0, resolution=0.0, collection=True)
    hit = plane.detect_hit(np.array([5.0, 1.0, 7.4]), 1.5)

    assert hit.collection
    assert hit.start[1] == 7.0
    assert hit.end[1] == 7.0
    assert plane.hits == [hit]

    plane.clear()
    assert plane.hits == []
