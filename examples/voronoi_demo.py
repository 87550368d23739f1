#!/usr/bin/env python3
"""
Demonstration of the divide-and-conquer Voronoi builder.

This script walks through:
1. Building a diagram from random sites
2. Inspecting faces, neighbours and the convex hull
3. Clipping faces to a bounding box
4. Lloyd's relaxation
5. Exporting and re-importing a site set

Pass --plot to draw the clipped faces with matplotlib (viz extra).
"""

import sys

import numpy as np

from py_voronoi.core import SiteSet, build, diagram_polygons, polygon_area, relax_sites
from py_voronoi.core.alea_prng import AleaPRNG
from py_voronoi.core.sites import site_bounds


def avg_nearest_neighbor(points):
    diff = points[:, None, :] - points[None, :, :]
    distances = np.hypot(diff[..., 0], diff[..., 1])
    np.fill_diagonal(distances, np.inf)
    return np.mean(np.min(distances, axis=1))


def plot(diagram, bounds):
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8, 6))
    for polygon in diagram_polygons(diagram, bounds):
        if len(polygon):
            closed = np.vstack([polygon, polygon[:1]])
            ax.plot(closed[:, 0], closed[:, 1], color="steelblue", linewidth=0.8)
    sites = np.array(diagram.sites)
    ax.scatter(sites[:, 0], sites[:, 1], s=6, color="black")
    hull = np.array(diagram.hull_points() + diagram.hull_points()[:1])
    ax.plot(hull[:, 0], hull[:, 1], color="darkred", linewidth=1.0)
    ax.set_aspect("equal")
    plt.show()


def main():
    width, height = 800.0, 600.0
    bounds = (0.0, 0.0, width, height)

    print("=== Voronoi Builder Demo ===\n")

    # 1. Random sites
    print("1. Generating 200 random sites...")
    sites = SiteSet(prng=AleaPRNG("demo_seed"))
    sites.add_random(200, width, height)
    diagram = sites.calculate()
    print(f"   - Faces: {diagram.face_count()}")
    print(f"   - Boundary edges: {diagram.edge_count()}")

    # 2. Structure
    print("\n2. Inspecting the diagram...")
    bounded = sum(1 for face in diagram.faces if face.is_bounded())
    print(f"   - Bounded faces: {bounded}")
    print(f"   - Hull size: {len(diagram.hull())}")
    face = diagram.face(diagram.face_count() // 2)
    print(f"   - Face {face.index} at {face.site} has neighbours {face.neighbor_indices()}")

    # 3. Clipping
    print("\n3. Clipping faces to the canvas...")
    areas = [polygon_area(p) for p in diagram_polygons(diagram, bounds)]
    print(f"   - Total clipped area: {sum(areas):.1f} (canvas {width * height:.1f})")
    print(f"   - Site bounding box: {site_bounds(sites.points)}")

    # 4. Relaxation
    print("\n4. Comparing with and without Lloyd's relaxation...")
    relaxed = relax_sites(sites.points, bounds, iterations=3)
    ann_unrelaxed = avg_nearest_neighbor(sites.points)
    ann_relaxed = avg_nearest_neighbor(relaxed)
    print(f"   - Avg nearest neighbor (unrelaxed): {ann_unrelaxed:.2f}")
    print(f"   - Avg nearest neighbor (relaxed): {ann_relaxed:.2f}")

    # 5. JSON
    print("\n5. Exporting and re-importing sites...")
    copy = SiteSet()
    copy.import_json(sites.export_json())
    same = build(copy.points).adjacency() == diagram.adjacency()
    print(f"   - Re-imported diagram identical: {same}")

    print("\n=== Demo Complete ===")

    if "--plot" in sys.argv:
        plot(build(relaxed), bounds)


if __name__ == "__main__":
    main()
