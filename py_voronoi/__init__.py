"""
py_voronoi - divide-and-conquer planar Voronoi diagrams.
"""

__version__ = "0.1.0"
