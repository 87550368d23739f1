"""
Core Voronoi construction functionality.
"""

from .exceptions import (
    VoronoiError, DegenerateInputError, GeometryError, InvalidEdgeError, DiagramSealedError,
)
from .geometry import Point, Line, line_through, create_perp_from_segment, intersection_with
from .face import EdgeArena, EdgeIterator, EdgeRange, Face
from .voronoi import Voronoi, Bridge, build
from .clipping import face_polygon, diagram_polygons, polygon_area, compute_polygon_centroid
from .sites import SiteSet, validate_sites, relax_sites

__all__ = ['VoronoiError', 'DegenerateInputError', 'GeometryError', 'InvalidEdgeError',
           'DiagramSealedError', 'Point', 'Line', 'line_through', 'create_perp_from_segment',
           'intersection_with', 'EdgeArena', 'EdgeIterator', 'EdgeRange', 'Face',
           'Voronoi', 'Bridge', 'build', 'face_polygon', 'diagram_polygons', 'polygon_area',
           'compute_polygon_centroid', 'SiteSet', 'validate_sites', 'relax_sites']
