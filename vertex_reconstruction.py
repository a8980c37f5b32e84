import csv
import numpy as np
import pandas as pd
from collections import defaultdict
from typing import Dict, List, Optional

from hit import WireHit
from vertex_config import VertexConfig
from vertex_finder import SearchState, VertexResult, find_vertex
from wire_geometry import points_from_wire_hits


# ----------------------------------------------------------
# 1. Load hits
# ----------------------------------------------------------
def load_wire_hits(csv_path: str) -> Dict[int, List[WireHit]]:
    """
    Load wire hits from CSV, grouped by event.

    The CSV must contain the columns EventID, Collection, x_drift,
    y_start, z_start, y_end, z_end and energy (as written by main.py).
    """
    buckets = defaultdict(list)
    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            ev = int(row["EventID"])
            buckets[ev].append(WireHit(
                x=float(row["x_drift"]),
                start=(float(row["y_start"]), float(row["z_start"])),
                end=(float(row["y_end"]), float(row["z_end"])),
                energy=float(row["energy"]),
                collection=bool(int(row["Collection"])),
            ))
    return dict(buckets)


# ----------------------------------------------------------
# 2. Find the vertex of each event
# ----------------------------------------------------------
def find_vertex_from_wire_hits(
    wire_hits: List[WireHit],
    config: Optional[VertexConfig] = None
) -> VertexResult:
    """
    Assign wire hits to views and run the vertex search on them.

    Events lacking one of the two induction views cannot be fused and
    come back FAILED.
    """
    hits, dirs = points_from_wire_hits(wire_hits)
    if dirs is None:
        return VertexResult(state=SearchState.FAILED,
                            failure="fewer than three views",
                            failed_in=SearchState.INIT)
    return find_vertex(hits, dirs, config)


def reconstruct_vertices(
    csv_path: str,
    config: Optional[VertexConfig] = None
) -> pd.DataFrame:
    """
    Run the vertex search on every event of a hits CSV.

    Parameters
    ----------
    csv_path : str
        Path to the hits CSV file.
    config : VertexConfig, optional
        Search tunables.

    Returns
    -------
    data : pd.DataFrame
        Indexed by EventID, with columns
            found | x | y | z | coarse_x | coarse_y | coarse_z | state
        Coordinates are NaN where no vertex was found.
    """
    events = load_wire_hits(csv_path)

    rows = []
    for event_id in sorted(events):
        res = find_vertex_from_wire_hits(events[event_id], config)

        vtx = res.vertex if res.found else np.full(3, np.nan)
        coarse = res.coarse if res.coarse is not None else np.full(3, np.nan)
        rows.append({
            "EventID": event_id,
            "found": res.found,
            "x": vtx[0], "y": vtx[1], "z": vtx[2],
            "coarse_x": coarse[0], "coarse_y": coarse[1], "coarse_z": coarse[2],
            "state": (res.failed_in or res.state).value,
        })

    columns = ["EventID", "found", "x", "y", "z",
               "coarse_x", "coarse_y", "coarse_z", "state"]
    data = pd.DataFrame(rows, columns=columns)
    data.set_index("EventID", inplace=True)
    return data


# ----------------------------------------------------------
# 3. Compare with truth
# ----------------------------------------------------------
def vertex_residuals(reco: pd.DataFrame, truth_csv: str) -> pd.DataFrame:
    """
    Residuals reco - truth for the events where a vertex was found.

    Returns a DataFrame indexed by EventID with columns dx, dy, dz, dr.
    """
    truth = pd.read_csv(truth_csv).set_index("EventID")
    found = reco[reco["found"]]
    joined = found.join(truth, rsuffix="_true", how="inner")

    res = pd.DataFrame({
        "dx": joined["x"] - joined["x_true"],
        "dy": joined["y"] - joined["y_true"],
        "dz": joined["z"] - joined["z_true"],
    }, index=joined.index)
    res["dr"] = np.sqrt(res["dx"]**2 + res["dy"]**2 + res["dz"]**2)
    return res
