import csv
import numpy as np
import pandas as pd

from conftest import TRACK_DIRS
from track import Track
from vertex_reconstruction import (find_vertex_from_wire_hits, load_wire_hits,
                                   reconstruct_vertices, vertex_residuals)
from wire_plane import default_planes

HEADER = ["EventID", "TrackID", "Collection", "x_drift",
          "y_start", "z_start", "y_end", "z_end", "energy"]


def write_event(writer, event_id, vertex, planes):
    rng = np.random.default_rng(event_id)
    for track_id, d in enumerate(TRACK_DIRS):
        track = Track(track_id, vertex, np.asarray(d), length=40.0)
        for point in track.sample_points(step=2.0, start=2.0):
            for plane in planes:
                hit = plane.detect_hit(point, 1.0, rng)
                writer.writerow([event_id, track_id, int(hit.collection), hit.x,
                                 hit.start[0], hit.start[1],
                                 hit.end[0], hit.end[1], hit.energy])
    for plane in planes:
        plane.clear()


def test_reconstruct_from_csv(tmp_path):
    planes = default_planes(pitch=0.01, resolution=0.0)
    vertices = {0: np.array([20.0, 5.0, 30.0]), 1: np.array([-7.0, -12.0, 55.0])}

    hits_csv = tmp_path / "hits.csv"
    truth_csv = tmp_path / "truth.csv"

    with open(hits_csv, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)
        for ev, vtx in vertices.items():
            write_event(writer, ev, vtx, planes)

        # an event seen by the collection plane only
        writer.writerow([2, 0, 1, 1.0, -500.0, 3.0, 500.0, 3.0, 1.0])
        writer.writerow([2, 0, 1, 2.0, -500.0, 4.0, 500.0, 4.0, 1.0])

    pd.DataFrame(
        [[ev, *vtx] for ev, vtx in vertices.items()],
        columns=["EventID", "x", "y", "z"]
    ).to_csv(truth_csv, index=False)

    events = load_wire_hits(str(hits_csv))
    assert sorted(events) == [0, 1, 2]

    reco = reconstruct_vertices(str(hits_csv))

    assert list(reco.index) == [0, 1, 2]
    assert list(reco["found"]) == [True, True, False]
    assert reco.loc[2, "state"] == "init"
    assert np.isnan(reco.loc[2, "x"])
    assert reco.loc[0, "state"] == "done"

    for ev, vtx in vertices.items():
        assert np.allclose(reco.loc[ev, ["x", "y", "z"]].to_numpy(float), vtx, atol=1.0)

    res = vertex_residuals(reco, str(truth_csv))
    assert list(res.columns) == ["dx", "dy", "dz", "dr"]
    assert len(res) == 2
    assert (res["dr"] < 1.5).all()


def test_collection_only_event_fails():
    from hit import WireHit
    res = find_vertex_from_wire_hits([WireHit(1.0, (0.0, 1.0), (1.0, 1.0), collection=True)])

    assert not res.found
    assert res.failure == "fewer than three views"
