"""Collection of useful functions for the Yeelight HomeKit bridge."""

from __future__ import annotations

from zlib import adler32


def mired_to_kelvin(mired: float) -> int:
    """Convert a HomeKit mired value to kelvin."""
    return round(1_000_000 / mired)


def kelvin_expression(mired: float) -> str:
    """Return the color expression for a color temperature, e.g. ``2700K``."""
    return f"{mired_to_kelvin(mired)}K"


def hsl_expression(hue: float, saturation: float) -> str:
    """Return the joint color expression for hue and saturation."""
    return f"hsl({hue:g}, {saturation:g}%, 100%)"


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp value into the closed range [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def rgb_from_int(value: int) -> tuple[int, int, int]:
    """Unpack a 0xRRGGBB integer."""
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def generate_aid(unique_id: str) -> int | None:
    """Generate accessory aid from a unique id."""
    aid = adler32(unique_id.encode("utf-8"))
    if aid in (0, 1):
        return None
    return aid
