"""Location Intelligence map-guarantee core.

Turns free-form agent text and heterogeneous geodata provider payloads
into a truthful GeoJSON-style FeatureCollection, with an ordered,
short-circuiting fallback chain that never fabricates coordinates.
"""

__version__ = "0.1.0"
