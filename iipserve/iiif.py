"""IIIF Image API requests: URL splitting, parameter parsing and info.json."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple

from iipserve.rawtile import ColourSpace

IIIF_SYNTAX = "IIIF syntax is {identifier}/{region}/{size}/{rotation}/{quality}{.format}"
IIIF_PROFILE = "http://iiif.io/api/image/2/level1.json"
IIIF_CONTEXT = "http://iiif.io/api/image/2/context.json"
IIIF_PROTOCOL = "http://iiif.io/api/image"

SUPPORTED_ROTATIONS = (0.0, 90.0, 180.0, 270.0, 360.0)

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_UINT_PREFIX = re.compile(r"\s*\+?(\d+)")


class IIIFError(ValueError):
    """Raised when a IIIF request is malformed or asks for something unsupported."""


@dataclass(frozen=True)
class Region:
    """A requested region as fractions of the full image size."""

    left: float = 0.0
    top: float = 0.0
    width: float = 1.0
    height: float = 1.0


@dataclass(frozen=True)
class ImageRequest:
    """The parsed region, size, rotation and quality of a IIIF image request."""

    region: Region = field(default_factory=Region)
    width: int = 0
    height: int = 0
    maintain_aspect: bool = True
    rotation: float = 0.0
    flip: int = 0
    colourspace: ColourSpace = ColourSpace.NONE


def _tokens(text: str, delimiter: str) -> Iterator[str]:
    """Yield delimiter-separated tokens; a trailing empty token is not produced."""
    while text:
        head, _, text = text.partition(delimiter)
        yield head


def _atof(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _read_float(text: str) -> Optional[float]:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else None


def _read_uint(text: str) -> Optional[int]:
    match = _UINT_PREFIX.match(text)
    return int(match.group(1)) if match else None


def _round(value: float) -> int:
    """Round half away from zero, as the C library does."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def split_request(argument: str) -> Tuple[str, str, str]:
    """Split a decoded request into ``(identifier, suffix, params)``.

    For ``id/info.json`` the suffix is ``info.json`` and params is empty.
    For ``id/region/size/rotation/quality.format`` params holds the last four
    path components. If the argument has no slash at all, the suffix is empty
    and the client should be redirected to the image's info.json.
    """
    last = argument.rfind("/")
    if last < 0:
        return argument, "", ""

    suffix = argument[last + 1 :]
    if suffix.startswith("info"):
        return argument[:last], suffix, ""

    position = last
    for _ in range(3):
        position = argument.rfind("/", 0, position)
        if position < 0:
            raise IIIFError("IIIF: Not enough parameters")
    return argument[:position], suffix, argument[position + 1 :]


def parse_region(token: str, width: int, height: int) -> Region:
    """Parse ``full``, ``square``, ``x,y,w,h`` or ``pct:x,y,w,h``."""
    text = token.lower()
    if text == "full":
        return Region()

    if text == "square":
        if height > width:
            h = width / height
            return Region(top=(1 - h) / 2.0, height=h)
        if width > height:
            w = height / width
            return Region(left=(1 - w) / 2.0, width=w)
        return Region()

    is_pct = text.startswith("pct:")
    if is_pct:
        text = text[4:]

    parts = list(_tokens(text, ","))
    values = [_atof(part) for part in parts[:4]]
    if len(parts) != 4 or values[2] <= 0.0 or values[3] <= 0.0:
        raise IIIFError(f"IIIF: incorrect region format: {text}")

    wd, hd = (100.0, 100.0) if is_pct else (float(width), float(height))
    return Region(
        left=values[0] / wd,
        top=values[1] / hd,
        width=values[2] / wd,
        height=values[3] / hd,
    )


def parse_size(
    token: str, region_width: int, region_height: int, max_size: int
) -> Tuple[int, int, bool]:
    """Parse a size parameter into ``(width, height, maintain_aspect)``.

    Accepts ``full``, ``pct:n``, ``w,``, ``,h``, ``w,h`` and ``!w,h``.
    """
    text = token.lower()
    requested_width = region_width
    requested_height = region_height
    ratio = region_width / region_height
    maintain_aspect = True

    if text == "full":
        pass

    elif text.startswith("pct:"):
        scale = _read_float(text[text.find(":") + 1 :])
        if scale is None:
            raise IIIFError("invalid size")
        requested_width = _round(requested_width * scale / 100.0)
        requested_height = _round(requested_height * scale / 100.0)

    else:
        if text.startswith("!"):
            text = text[1:]
        else:
            maintain_aspect = False

        pos = text.find(",")
        if pos < 0:
            raise IIIFError("invalid size: no comma found")

        if pos == 0:
            value = _read_uint(text[1:])
            if value is None:
                raise IIIFError("invalid height")
            requested_height = value
            requested_width = _round(requested_height * ratio)
            maintain_aspect = True

        elif pos == len(text) - 1:
            value = _read_uint(text)
            if value is None:
                raise IIIFError("invalid width")
            requested_width = value
            requested_height = _round(requested_width / ratio)
            maintain_aspect = True

        else:
            w = _read_uint(text[:pos])
            if w is None:
                raise IIIFError("invalid width")
            h = _read_uint(text[pos + 1 :])
            if h is None:
                raise IIIFError("invalid height")
            requested_width, requested_height = w, h

    if requested_width == 0 or requested_height == 0:
        raise IIIFError("IIIF: invalid size")

    if requested_width > max_size or requested_height > max_size:
        if ratio > 1.0:
            requested_width = max_size
            requested_height = _round(max_size * ratio) if maintain_aspect else max_size
        else:
            requested_height = max_size
            requested_width = _round(max_size / ratio) if maintain_aspect else max_size

    return requested_width, requested_height, maintain_aspect


def parse_rotation(token: str) -> Tuple[float, int]:
    """Parse a rotation into ``(degrees, flip)``; flip is 1 horizontal, 2 vertical."""
    flip = 0
    text = token
    if text.startswith("!"):
        flip = 1
        text = text[1:]

    rotation = _read_float(text)
    if rotation is None:
        raise IIIFError("IIIF: invalid rotation")
    if rotation not in SUPPORTED_ROTATIONS:
        raise IIIFError(
            "IIIF: currently implemented rotation angles are 0, 90, 180 and 270 degrees"
        )

    # A mirrored 180 degree rotation is simply a vertical flip
    if rotation == 180.0 and flip == 1:
        return 0.0, 2
    return rotation, flip


def parse_quality(token: str) -> ColourSpace:
    """Parse ``quality[.format]``.

    Returns GREYSCALE for grey output, or NONE to keep the image's colours.
    """
    text = token.lower()
    quality, dot, output_format = text.rpartition(".")
    if not dot:
        quality = text
    elif output_format != "jpg":
        raise IIIFError("IIIF :: Only JPEG output supported")

    if quality in ("native", "color", "default"):
        return ColourSpace.NONE
    if quality in ("grey", "gray"):
        return ColourSpace.GREYSCALE
    raise IIIFError(
        "unsupported quality parameter - must be one of native, color or grey"
    )


def parse_image_request(
    params: str, width: int, height: int, max_size: int
) -> ImageRequest:
    """Parse ``region/size/rotation/quality.format`` for an image of the given size."""
    tokens = list(_tokens(params, "/"))

    region = Region()
    requested_width, requested_height, maintain_aspect = width, height, True
    rotation, flip = 0.0, 0
    colourspace = ColourSpace.NONE

    if len(tokens) > 0:
        region = parse_region(tokens[0], width, height)
    if len(tokens) > 1:
        region_width = max(1, _round(region.width * width))
        region_height = max(1, _round(region.height * height))
        requested_width, requested_height, maintain_aspect = parse_size(
            tokens[1], region_width, region_height, max_size
        )
    if len(tokens) > 2:
        rotation, flip = parse_rotation(tokens[2])
    if len(tokens) > 3:
        colourspace = parse_quality(tokens[3])

    if len(tokens) > 4:
        raise IIIFError(f"IIIF: Query has too many parameters. {IIIF_SYNTAX}")
    if len(tokens) < 4:
        raise IIIFError(f"IIIF: Query has too few parameters. {IIIF_SYNTAX}")

    return ImageRequest(
        region=region,
        width=requested_width,
        height=requested_height,
        maintain_aspect=maintain_aspect,
        rotation=rotation,
        flip=flip,
        colourspace=colourspace,
    )


def info_json(
    iiif_id: str,
    width: int,
    height: int,
    image_widths: Sequence[int],
    image_heights: Sequence[int],
    tile_width: int,
    tile_height: int,
    max_size: int,
) -> str:
    """The info.json document describing an image (resolution 0 is full size)."""
    count = len(image_widths)
    size_entries = [(image_widths[count - 1], image_heights[count - 1])]
    for i in range(count - 2, 0, -1):
        w, h = image_widths[i], image_heights[i]
        # Only advertise sizes below the maximum allowed output size
        if max_size == 0 or (w < max_size and h < max_size):
            size_entries.append((w, h))

    sizes = ",\n".join(
        f'     {{ "width" : {w}, "height" : {h} }}' for w, h in size_entries
    )
    scale_factors = "".join(f", {2.0 ** i:g}" for i in range(1, count))

    return (
        "{\n"
        f'  "@context" : "{IIIF_CONTEXT}",\n'
        f'  "@id" : "{iiif_id}",\n'
        f'  "protocol" : "{IIIF_PROTOCOL}",\n'
        f'  "width" : {width},\n'
        f'  "height" : {height},\n'
        '  "sizes" : [\n'
        f"{sizes}\n"
        "  ],\n"
        '  "tiles" : [\n'
        f'     {{ "width" : {tile_width}, "height" : {tile_height}, '
        f'"scaleFactors" : [ 1{scale_factors} ] }}\n'
        "  ],\n"
        '  "profile" : [\n'
        f'     "{IIIF_PROFILE}",\n'
        '     { "formats" : [ "jpg" ],\n'
        '       "qualities" : [ "native","color","gray" ],\n'
        '       "supports" : ["regionByPct","regionSquare","sizeByForcedWh",'
        '"sizeByWh","sizeAboveFull","rotationBy90s","mirroring"] }\n'
        "  ]\n"
        "}"
    )


def redirect_response(identifier: str, version: str) -> str:
    """HTTP 303 headers redirecting a bare identifier to its info.json."""
    return (
        "Status: 303 See Other\r\n"
        f"Location: {identifier}/info.json\r\n"
        f"Server: iipsrv/{version}\r\n"
        "\r\n"
    )