# debug.py
import logging
import matplotlib.pyplot as plt

from pyscripts.plotting import plot_heat_maps, plot_view_hits
from vertex_config import VertexConfig
from vertex_finder import find_vertex
from vertex_reconstruction import load_wire_hits
from wire_geometry import points_from_wire_hits


# ---- Plot one event: hits, coarse and zoom heat maps ----
def plot_event_vertex(csv_path: str, event_id: int, log_scale: bool = True):
    events = load_wire_hits(csv_path)
    wire_hits = events.get(event_id)
    if not wire_hits:
        raise SystemExit(f"[!] Event {event_id} not found in {csv_path}")

    hits, dirs = points_from_wire_hits(wire_hits)
    if dirs is None:
        raise SystemExit(f"[!] Event {event_id} does not have three views.")

    counts = [sum(1 for h in hits if h.view == v) for v in range(3)]
    print(f"[i] Hits per view: {counts}")

    res = find_vertex(hits, dirs, VertexConfig(keep_maps=True))

    if res.coarse is not None:
        print(f"[i] Coarse vertex: {res.coarse}")
    if not res.found:
        print(f"[!] No vertex: {res.failure} (during {res.failed_in.value})")
    else:
        print(f"[i] Vertex: {res.vertex}")

    plot_view_hits(hits, dirs, res.vertex if res.found else res.coarse)
    if res.coarse_maps:
        plot_heat_maps(res.coarse_maps, dirs, res.coarse,
                       title=f"Event {event_id}: coarse pass", log_scale=log_scale)
    if res.zoom_maps:
        plot_heat_maps(res.zoom_maps, dirs, res.vertex,
                       title=f"Event {event_id}: zoom pass", log_scale=log_scale)
    plt.show()


# ---- Run directly ----
if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    csv_path = "hits.csv"   # adjust to your CSV
    event_id = 0            # choose your event
    plot_event_vertex(csv_path, event_id)
