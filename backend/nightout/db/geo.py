"""
PostGIS expression helpers.

All distances in the API are miles; PostGIS geography works in meters.
"""

from sqlalchemy import func

METERS_PER_MILE = 1609.34


def geo_point(latitude: float, longitude: float):
    """WGS84 geography point. Note PostGIS takes (lon, lat) order."""
    return func.ST_GeogFromText(f"SRID=4326;POINT({float(longitude)} {float(latitude)})")


def distance_miles(column, latitude: float, longitude: float):
    return func.ST_Distance(column, geo_point(latitude, longitude)) / METERS_PER_MILE


def within_miles(column, latitude: float, longitude: float, radius_miles: float):
    return func.ST_DWithin(column, geo_point(latitude, longitude), radius_miles * METERS_PER_MILE)
