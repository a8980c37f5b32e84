# main.py
import csv
import logging
import numpy as np

from track import create_random_track
from wire_plane import default_planes

logging.basicConfig(level=logging.INFO,
                    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

num_events = 10
avg_tracks = 3
avg_noise_hits = 20
step = 1.0
seed = 1
output_file = "hits.csv"
truth_file = "vertices_true.csv"

# Detector volume (cm): x is drift
drift_range = (0.0, 250.0)
y_range = (-100.0, 100.0)
z_range = (0.0, 500.0)

rng = np.random.default_rng(seed)
planes = default_planes()

print("Starting simulation...")

with open(output_file, mode="w", newline="") as csvfile, \
        open(truth_file, mode="w", newline="") as truthfile:
    writer = csv.writer(csvfile)
    writer.writerow(["EventID", "TrackID", "Collection", "x_drift",
                     "y_start", "z_start", "y_end", "z_end", "energy"])
    truth = csv.writer(truthfile)
    truth.writerow(["EventID", "x", "y", "z"])

    for event_id in range(num_events):
        vertex = np.array([
            rng.uniform(drift_range[0] + 50, drift_range[1] - 50),
            rng.uniform(y_range[0] + 20, y_range[1] - 20),
            rng.uniform(z_range[0] + 20, z_range[1] - 200),
        ])
        truth.writerow([event_id] + [f"{v:.4f}" for v in vertex])

        # 1. Signal loop
        n_tracks = max(2, rng.poisson(avg_tracks))
        for track_id in range(n_tracks):
            track = create_random_track(track_id, vertex, rng)
            for point in track.sample_points(step):
                for plane in planes:
                    plane.detect_hit(point, track.dedx * step, rng)
            for plane in planes:
                for hit in plane.hits:
                    writer.writerow([
                        event_id, track_id, int(hit.collection),
                        f"{hit.x:.4f}",
                        f"{hit.start[0]:.4f}", f"{hit.start[1]:.4f}",
                        f"{hit.end[0]:.4f}", f"{hit.end[1]:.4f}",
                        f"{hit.energy:.4f}",
                    ])
                plane.clear()

        # 2. Noise loop
        for plane in planes:
            n_noise = rng.poisson(avg_noise_hits)
            for _ in range(n_noise):
                point = np.array([
                    rng.uniform(*drift_range),
                    rng.uniform(*y_range),
                    rng.uniform(*z_range),
                ])
                hit = plane.detect_hit(point, rng.uniform(0.1, 1.0), rng)
                writer.writerow([
                    event_id, -1, int(hit.collection),
                    f"{hit.x:.4f}",
                    f"{hit.start[0]:.4f}", f"{hit.start[1]:.4f}",
                    f"{hit.end[0]:.4f}", f"{hit.end[1]:.4f}",
                    f"{hit.energy:.4f}",
                ])
            plane.clear()

print(f"Simulation complete. Hits saved to {output_file}, truth to {truth_file}")


# =================================================================
#                           reconstruction
# =================================================================

from vertex_reconstruction import reconstruct_vertices, vertex_residuals

reco = reconstruct_vertices(output_file)
residuals = vertex_residuals(reco, truth_file)

n_found = int(reco["found"].sum())
print(f"[i] Vertices found in {n_found}/{len(reco)} events")
if n_found:
    print(f"[i] Median 3D residual: {residuals['dr'].median():.3f} cm")
