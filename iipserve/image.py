"""Pyramidal image sources: format detection, sequences and metadata."""

from __future__ import annotations

import glob
import os
import re
from dataclasses import dataclass, field
from email.utils import formatdate
from enum import Enum
from typing import Dict, List, Optional

from iipserve.rawtile import ColourSpace, SampleType


class FileError(RuntimeError):
    """Raised when an image file cannot be found, opened or read."""


class ImageFormat(Enum):
    """Image file formats the server recognises."""

    TIF = "tif"
    JPEG2000 = "jpeg2000"
    UNSUPPORTED = "unsupported"


_J2K_SIGNATURE = bytes([0x00, 0x00, 0x00, 0x0C, 0x6A, 0x50, 0x20, 0x20, 0x0D, 0x0A])

_TIFF_SIGNATURES = (
    bytes([0x49, 0x20, 0x49]),  # TIFF
    bytes([0x49, 0x49, 0x2A, 0x00]),  # little endian TIFF
    bytes([0x49, 0x49, 0x2A, 0x00]),  # big endian TIFF (as recognised by the server)
    bytes([0x4D, 0x4D, 0x00, 0x2B]),  # BigTIFF
    bytes([0x49, 0x49, 0x2B, 0x00]),  # BigTIFF
)

_HEADER_LENGTH = 10

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def detect_format(header: bytes) -> ImageFormat:
    """Identify an image format from the first bytes of its file."""
    header = bytes(header)
    if header[: len(_J2K_SIGNATURE)] == _J2K_SIGNATURE:
        return ImageFormat.JPEG2000
    if any(header.startswith(signature) for signature in _TIFF_SIGNATURES):
        return ImageFormat.TIF
    return ImageFormat.UNSUPPORTED


def http_date(timestamp: float) -> str:
    """Format a POSIX timestamp as an RFC 1123 HTTP date in GMT."""
    return formatdate(timestamp, usegmt=True)


def _format_from_suffix(suffix: str) -> ImageFormat:
    if suffix in ("jp2", "jpx", "j2k"):
        return ImageFormat.JPEG2000
    if suffix in ("tif", "tiff"):
        return ImageFormat.TIF
    return ImageFormat.UNSUPPORTED


def _leading_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


@dataclass(eq=False)
class IIPImage:
    """An image source: a single file or a sequence of files with view angles."""

    image_path: str = ""
    filesystem_prefix: str = ""
    filename_pattern: str = ""
    is_file: bool = False
    suffix: str = ""
    horizontal_angles: List[int] = field(default_factory=list)
    vertical_angles: List[int] = field(default_factory=list)
    lut: List[int] = field(default_factory=list)
    virtual_levels: int = 0
    format: ImageFormat = ImageFormat.UNSUPPORTED
    image_widths: List[int] = field(default_factory=list)
    image_heights: List[int] = field(default_factory=list)
    tile_width: int = 0
    tile_height: int = 0
    colourspace: ColourSpace = ColourSpace.NONE
    num_resolutions: int = 0
    bpc: int = 0
    channels: int = 0
    sample_type: SampleType = SampleType.FIXEDPOINT
    min: List[float] = field(default_factory=list)
    max: List[float] = field(default_factory=list)
    quality_layers: int = 0
    is_set: bool = False
    current_x: int = 0
    current_y: int = 90
    metadata: Dict[str, str] = field(default_factory=dict)
    timestamp: int = 0

    @property
    def _base(self) -> str:
        return self.filesystem_prefix + self.image_path

    def _test_image_type(self) -> None:
        path = self._base
        if os.path.isfile(path):
            try:
                with open(path, "rb") as handle:
                    header = handle.read(_HEADER_LENGTH)
                stat = os.stat(path)
            except OSError as error:
                raise FileError(f"Unable to open file '{path}'") from error

            if len(header) < _HEADER_LENGTH:
                raise FileError(
                    f"Unable to read initial byte sequence from file '{path}'"
                )

            self.is_file = True
            self.timestamp = int(stat.st_mtime)
            self.format = detect_format(header)
            return

        pattern = path + self.filename_pattern + "000_090.*"
        matches = sorted(
            glob.glob(glob.escape(path + self.filename_pattern) + "000_090.*")
        )
        if not matches:
            raise FileError(f"{path} is neither a file nor part of an image sequence")
        if len(matches) != 1:
            raise FileError(f"There are multiple file extensions matching {pattern}")

        match = matches[0]
        self.is_file = False
        self.suffix = match[match.rfind(".") + 1 :]
        self.format = _format_from_suffix(self.suffix)
        self.update_timestamp(match)

    def _measure_vertical_angles(self) -> None:
        base = glob.escape(self._base + self.filename_pattern)
        angles = []
        for name in sorted(glob.glob(f"{base}000_*.{glob.escape(self.suffix)}")):
            end = len(name) - len(self.suffix) - 1
            angle = _leading_int(name[max(end - 3, 0) : end])
            if angle is not None:
                angles.append(angle)
        self.vertical_angles = sorted(angles)

    def _measure_horizontal_angles(self) -> None:
        stem = self._base + self.filename_pattern
        angles = []
        for name in sorted(
            glob.glob(f"{glob.escape(stem)}*_090.{glob.escape(self.suffix)}")
        ):
            angle = _leading_int(name[len(stem) : name.rfind("_")])
            if angle is not None:
                angles.append(angle)
        self.horizontal_angles = sorted(angles)

    def initialise(self) -> None:
        """Determine the image type and, for sequences, the available angles."""
        self._test_image_type()
        if not self.is_file:
            self._measure_horizontal_angles()
            self._measure_vertical_angles()
        else:
            self.horizontal_angles.insert(0, 0)
            self.vertical_angles.insert(0, 90)

    def file_name(self, x: int, y: int) -> str:
        """Full file path for the given horizontal and vertical sequence angles."""
        if self.is_file:
            return self._base
        return f"{self._base}{self.filename_pattern}{x:03d}_{y:03d}.{self.suffix}"

    def update_timestamp(self, path: str) -> None:
        """Set the timestamp from the modification time of ``path``."""
        try:
            stat = os.stat(path)
        except OSError as error:
            raise FileError(f"Unable to open file {path}") from error
        self.timestamp = int(stat.st_mtime)

    def http_timestamp(self) -> str:
        """The image timestamp as an RFC 1123 HTTP date."""
        return http_date(self.timestamp)

    def image_width(self, n: int = 0) -> int:
        """Width in pixels at resolution index ``n`` (0 is full size)."""
        return self.image_widths[n]

    def image_height(self, n: int = 0) -> int:
        """Height in pixels at resolution index ``n`` (0 is full size)."""
        return self.image_heights[n]

    def get_metadata(self, key: str) -> str:
        """Return a metadata field, or an empty string if it is absent."""
        return self.metadata.get(key, "")

    def open_image(self) -> None:
        """Open the image; only format-specific images can do this."""
        raise FileError("IIPImage openImage called")

    def __eq__(self, other: object) -> bool:
        """Images are equal when they refer to the same path."""
        if not isinstance(other, IIPImage):
            return NotImplemented
        return self.image_path == other.image_path