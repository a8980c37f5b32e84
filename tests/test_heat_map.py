import math
import numpy as np
import pytest

from heat_map import (HeatMap, close_angles, count_admissible_pairs,
                      map_from_lines)
from line_finder import LineSet


@pytest.fixture
def hm():
    return HeatMap(10, 0.0, 10.0, 5, 0.0, 5.0)


def test_bins(hm):
    assert hm.z_to_bin(0.0) == 0
    assert hm.z_to_bin(9.99) == 9
    assert hm.x_to_bin(2.5) == 2


def test_out_of_range_bins(hm):
    assert hm.z_to_bin(10.0) == -1
    assert hm.z_to_bin(-0.01) == -1
    assert hm.x_to_bin(7.0) == -1
    assert hm.z_to_bin(float("nan")) == -1
    assert hm.x_to_bin(float("inf")) == -1


def test_bin_centers(hm):
    assert hm.z_bin_center(0) == 0.5
    assert hm.x_bin_center(4) == 4.5
    assert hm.z_to_bin(hm.z_bin_center(7)) == 7


def test_fill(hm):
    assert hm.fill(3.2, 1.1, 2.0)
    assert hm.map[3, 1] == 2.0
    assert not hm.fill(30.0, 1.1)
    assert hm.total() == 2.0


def test_fill_many(hm):
    n = hm.fill_many([1.5, 1.5, 20.0, 8.0], [0.5, 0.5, 0.5, -3.0], 3)
    assert n == 2
    assert hm.map[1, 0] == 6
    assert hm.total() == 6


def test_row_max(hm):
    hm.fill(0.5, 0.5, 1.0)
    hm.fill(0.5, 3.5, 4.0)
    hm.fill(9.5, 2.5, 2.0)

    rm = hm.row_max()
    assert rm.shape == (10,)
    assert rm[0] == 4.0
    assert rm[9] == 2.0
    assert rm[5] == 0.0


def test_to_frame(hm):
    hm.fill(2.5, 1.5, 5.0)
    df = hm.to_frame()

    assert len(df) == 50
    row = df[df["weight"] > 0]
    assert len(row) == 1
    assert row["z"].iloc[0] == 2.5
    assert row["x"].iloc[0] == 1.5


@pytest.mark.parametrize("args", [
    (0, 0.0, 1.0, 5, 0.0, 1.0),
    (5, 1.0, 1.0, 5, 0.0, 1.0),
    (5, 0.0, 1.0, 5, 2.0, 1.0),
])
def test_bad_binning(args):
    with pytest.raises(ValueError):
        HeatMap(*args)


# ---------------------------------------------------------------------

@pytest.mark.parametrize("m", [-1e6, -3.0, -0.2, 0.0, 0.7, 12.0, 1e6])
def test_close_angles_self(m):
    assert close_angles(m, m)


def test_close_angles():
    assert close_angles(0.0, math.tan(math.radians(5)))
    assert not close_angles(0.0, math.tan(math.radians(15)))
    assert not close_angles(math.tan(math.radians(30)), math.tan(math.radians(-30)))
    # almost vertical either way round is the same direction
    assert close_angles(1e6, -1e6)


def test_vote_at_crossing():
    hm = HeatMap(10, -5.0, 5.0, 10, -5.0, 5.0)
    # x = z and x = -z, both segments over z in [1, 2]
    lines = LineSet([1.0, -1.0], [0.0, 0.0], [1.0, 1.0], [2.0, 2.0])

    stride = map_from_lines(lines, hm)

    assert stride == 1
    assert hm.total() == 1
    assert hm.map[5, 5] == 1


def test_no_vote_inside_segment():
    hm = HeatMap(10, -5.0, 5.0, 10, -5.0, 5.0)
    # the first segment covers the crossing at z = 0
    lines = LineSet([1.0, -1.0], [0.0, 0.0], [-1.0, 1.0], [1.0, 2.0])

    map_from_lines(lines, hm)
    assert hm.total() == 0


def test_no_vote_for_close_angles():
    hm = HeatMap(10, -5.0, 5.0, 10, -5.0, 5.0)
    lines = LineSet([1.0, 1.05], [0.0, 0.0], [1.0, 1.0], [2.0, 2.0])

    map_from_lines(lines, hm)
    assert hm.total() == 0


def test_vote_off_map_dropped():
    hm = HeatMap(10, -5.0, 5.0, 10, -5.0, 5.0)
    # crossing at z = 20
    lines = LineSet([1.0, -1.0], [-20.0, 20.0], [1.0, 1.0], [2.0, 2.0])

    map_from_lines(lines, hm)
    assert hm.total() == 0


def fan_of_lines(n, seed=0):
    rng = np.random.default_rng(seed)
    m = np.tan(rng.uniform(-1.5, 1.5, n))
    c = rng.uniform(-1, 1, n)
    lo = rng.uniform(5, 6, n)
    return LineSet(m, c, lo, lo + 1)


def admissible_pairs(lines):
    m = [float(v) for v in lines.m]
    return [
        (i, j)
        for i in range(len(m))
        for j in range(i + 1, len(m))
        if not close_angles(m[i], m[j])
    ]


def test_admissible_pair_count():
    lines = fan_of_lines(60)
    # with slopes sorted, the partners of i that are not close to it form
    # one contiguous run, so the windows see exactly the full scan's pairs
    assert count_admissible_pairs(lines) == len(admissible_pairs(lines))
    assert count_admissible_pairs(lines) > 0


def test_votes_match_full_scan():
    lines = fan_of_lines(70, seed=3)
    hm = HeatMap(40, -20.0, 20.0, 40, -20.0, 20.0)
    assert map_from_lines(lines, hm) == 1

    expected = HeatMap(40, -20.0, 20.0, 40, -20.0, 20.0)
    for i, j in admissible_pairs(lines):
        a, b = lines[i], lines[j]
        z = (b.c - a.c) / (a.m - b.m)
        x = a.m * z + a.c
        if (z < a.minz or z > a.maxz) and (z < b.minz or z > b.maxz):
            expected.fill(z, x)

    assert expected.total() > 0
    assert np.array_equal(hm.map, expected.map)


def test_stride_when_over_budget():
    lines = fan_of_lines(80)
    npts = count_admissible_pairs(lines)
    hm = HeatMap(40, -20.0, 20.0, 40, -20.0, 20.0)

    stride = map_from_lines(lines, hm, max_pts=100)

    assert stride == npts // 100 + 1
    assert stride > 1
    # every vote carries the stride as its weight
    assert hm.total() % stride == 0
