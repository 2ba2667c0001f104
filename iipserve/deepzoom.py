"""DeepZoom protocol: request parsing, level mapping and DZI descriptors."""

from __future__ import annotations

import re
from dataclasses import dataclass

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class DeepZoomRequest:
    """A parsed DeepZoom request: either a DZI descriptor or a tile."""

    prefix: str
    is_dzi: bool
    resolution: int = 0
    x: int = 0
    y: int = 0


def parse_request(argument: str) -> DeepZoomRequest:
    """Parse ``image.dzi`` or ``image_files/r/x_y.jpg`` into its parts."""
    suffix = argument[argument.rfind(".") + 1 :]
    if suffix == "dzi":
        return DeepZoomRequest(prefix=argument[:-4], is_dzi=True)

    files = argument.rfind("_files/")
    prefix = argument[:files] if files >= 0 else argument

    n1 = argument.rfind("/")
    if n1 < 0:
        raise ValueError(f"Invalid DeepZoom tile request: {argument}")
    n2 = argument[:n1].rfind("/") + 1
    resolution = _atoi(argument[n2:n1])

    dot = argument.rfind(".")
    coords = argument[n1 + 1 : dot] if dot > n1 else argument[n1 + 1 :]
    x_part, sep, y_part = coords.partition("_")
    x = _atoi(x_part)
    y = _atoi(y_part) if sep else x
    return DeepZoomRequest(prefix=prefix, is_dzi=False, resolution=resolution, x=x, y=y)


def dzi_levels(width: int, height: int) -> int:
    """Number of DeepZoom levels: ceil(log2) of the larger image dimension."""
    largest = max(width, height)
    if largest < 1:
        raise ValueError("image dimensions must be positive")
    return (largest - 1).bit_length()


def map_resolution(requested: int, dzi_res: int, num_resolutions: int) -> int:
    """Map a DeepZoom level onto an available image resolution, clamped."""
    resolution = requested - (dzi_res - num_resolutions) - 1
    return max(0, min(resolution, num_resolutions - 1))


def tile_index(width: int, tile_width: int, x: int, y: int) -> int:
    """Linear tile index for tile column ``x`` and row ``y``."""
    columns = -(-width // tile_width)
    return y * columns + x


def dzi_response(
    version: str,
    timestamp: str,
    cache_control: str,
    tile_width: int,
    width: int,
    height: int,
) -> str:
    """HTTP headers and XML body of a DZI descriptor reply."""
    return (
        f"Server: iipsrv/{version}\r\n"
        "Content-Type: application/xml\r\n"
        f"Last-Modified: {timestamp}\r\n"
        f"{cache_control}\r\n"
        "\r\n"
        '<?xml version="1.0" encoding="UTF-8"?>\r\n'
        '<Image xmlns="http://schemas.microsoft.com/deepzoom/2008"\r\n'
        f'TileSize="{tile_width}" Overlap="0" Format="jpg">'
        f'<Size Width="{width}" Height="{height}"/>'
        "</Image>"
    )