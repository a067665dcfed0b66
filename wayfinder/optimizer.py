"""Greedy nearest-neighbor ordering of waypoints."""

from typing import Optional, Sequence

from .geo import distance, path_length
from .models import GeoPoint, Waypoint


def nearest_neighbor_order(waypoints: Sequence[Waypoint],
                           start: Optional[GeoPoint] = None) -> list[Waypoint]:
    """Reorder waypoints by repeatedly visiting the closest unvisited one.

    If ``start`` is given (the tracked position) every waypoint is a candidate.
    Otherwise the first waypoint is the start and stays first.

    With fewer than 2 points in total the input order is returned unchanged.
    Equidistant candidates resolve to the earliest one in the remaining order.
    """
    total_points = len(waypoints) + (1 if start is not None else 0)
    if total_points < 2:
        return list(waypoints)

    unvisited = list(waypoints)
    ordered: list[Waypoint] = []
    if start is None:
        first = unvisited.pop(0)
        ordered.append(first)
        current = first.position
    else:
        current = start

    while unvisited:
        best_index = 0
        best_distance = distance(current, unvisited[0].position)
        for i in range(1, len(unvisited)):
            d = distance(current, unvisited[i].position)
            if d < best_distance:
                best_index = i
                best_distance = d
        chosen = unvisited.pop(best_index)
        ordered.append(chosen)
        current = chosen.position

    return ordered


def tour_length(waypoints: Sequence[Waypoint], start: Optional[GeoPoint] = None) -> float:
    """Straight-line length in km of visiting waypoints in order from start"""
    points = [w.position for w in waypoints]
    if start is not None:
        points.insert(0, start)
    return path_length(points)
