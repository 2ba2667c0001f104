"""Image tiles and regions as decoded pixel buffers."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum
from typing import Union


class ColourSpace(IntEnum):
    """Colour spaces an image may use."""

    NONE = 0
    GREYSCALE = 1
    SRGB = 2
    CIELAB = 3


class CompressionType(IntEnum):
    """How the tile data is encoded."""

    UNCOMPRESSED = 0
    JPEG = 1
    DEFLATE = 2
    PNG = 3


class SampleType(IntEnum):
    """Whether samples are integers or floating point values."""

    FIXEDPOINT = 0
    FLOATINGPOINT = 1


Buffer = Union[bytes, bytearray]


@dataclass(eq=False)
class RawTile:
    """A single tile or region of image data with its description."""

    tile_num: int = 0
    resolution: int = 0
    h_sequence: int = 0
    v_sequence: int = 0
    width: int = 0
    height: int = 0
    channels: int = 0
    bpc: int = 0
    compression_type: CompressionType = CompressionType.UNCOMPRESSED
    quality: int = 0
    filename: str = ""
    timestamp: int = 0
    data: Buffer = b""
    sample_type: SampleType = SampleType.FIXEDPOINT
    padded: bool = False

    @property
    def size(self) -> int:
        """Length of the data buffer in bytes."""
        return len(self.data)

    def copy(self) -> "RawTile":
        """Return an independent copy, including its data buffer."""
        data = bytearray(self.data) if isinstance(self.data, bytearray) else bytes(self.data)
        return dataclasses.replace(self, data=data)

    def _identity(self):
        return (
            self.tile_num,
            self.resolution,
            self.h_sequence,
            self.v_sequence,
            self.compression_type,
            self.quality,
            self.filename,
        )

    def __eq__(self, other: object) -> bool:
        """Tiles are equal when they describe the same tile of the same file."""
        if not isinstance(other, RawTile):
            return NotImplemented
        return self._identity() == other._identity()