"""Encoded polyline codec for route geometry.

The directions backend returns the overview path in Google's encoded
polyline format at 1e-5 precision, with each point written as
``(latitude, longitude)``. The map view draws ``(longitude, latitude)``
pairs, so decoding swaps the axes.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ...models.domain import LngLat

PRECISION = 1e5


class MalformedPathError(ValueError):
    """Raised when an encoded path cannot be decoded into a usable line."""


def _read_deltas(encoded: str) -> list[int]:
    deltas: list[int] = []
    index = 0
    length = len(encoded)
    while index < length:
        shift = 0
        result = 0
        while True:
            if index >= length:
                raise MalformedPathError("Encoded path ends in the middle of a value.")
            b = ord(encoded[index]) - 63
            index += 1
            if b < 0 or b > 0x3F:
                raise MalformedPathError(f"Invalid character {encoded[index - 1]!r} at position {index - 1}.")
            result |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
    return deltas


def decode(encoded: str) -> list[LngLat]:
    """Decode an encoded polyline into ``(longitude, latitude)`` points.

    Raises:
        MalformedPathError: if the string holds an odd number of coordinate
            deltas, a truncated value, or no points at all.
    """
    deltas = _read_deltas(encoded or "")
    if not deltas:
        raise MalformedPathError("Encoded path is empty.")
    if len(deltas) % 2:
        raise MalformedPathError(f"Encoded path has an odd number of coordinate deltas ({len(deltas)}).")

    coordinates: list[LngLat] = []
    lat = 0
    lng = 0
    for dlat, dlng in zip(deltas[0::2], deltas[1::2]):
        lat += dlat
        lng += dlng
        coordinates.append((lng / PRECISION, lat / PRECISION))
    return coordinates


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else (value << 1)
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode(points: Iterable[Sequence[float]]) -> str:
    """Encode ``(longitude, latitude)`` points; inverse of :func:`decode`."""
    parts: list[str] = []
    prev_lat = 0
    prev_lng = 0
    for lng, lat in points:
        lat_e5 = int(round(lat * PRECISION))
        lng_e5 = int(round(lng * PRECISION))
        parts.append(_encode_value(lat_e5 - prev_lat))
        parts.append(_encode_value(lng_e5 - prev_lng))
        prev_lat, prev_lng = lat_e5, lng_e5
    return "".join(parts)
