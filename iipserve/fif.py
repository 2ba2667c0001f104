"""Image lookup for FIF requests: path decoding, caching and freshness checks."""

from __future__ import annotations

import copy
from collections import OrderedDict
from email.utils import mktime_tz, parsedate_tz
from typing import Optional, Tuple
from urllib.parse import unquote

from iipserve.image import IIPImage, ImageFormat

MAX_IMAGE_CACHE = 1000

SUPPORTED_FORMATS = frozenset({ImageFormat.TIF})


class NotModified(Exception):
    """Raised when the image has not changed since the client's cached copy."""

    status = 304


class UnsupportedImage(ValueError):
    """Raised when the requested image is of a type the server cannot decode."""


def decode_path(src: str) -> str:
    """Decode a URL-encoded image path and strip every ``../`` from it."""
    argument = unquote(src)
    while "../" in argument:
        index = argument.find("../")
        argument = argument[:index] + argument[index + 3 :]
    return argument


class ImageCache:
    """A bounded cache of image descriptions keyed by request path."""

    def __init__(self, max_size: int = MAX_IMAGE_CACHE) -> None:
        self.max_size = max_size
        self._images: "OrderedDict[str, IIPImage]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._images)

    def __contains__(self, argument: object) -> bool:
        return argument in self._images

    def lookup(
        self, argument: str, filesystem_prefix: str, filename_pattern: str
    ) -> Tuple[IIPImage, int]:
        """Return a copy of the image for ``argument`` and its cached timestamp.

        On a cache miss the image is examined on disk and the returned
        timestamp is 0. A miss on a full cache evicts the oldest entry.
        """
        cached = self._images.get(argument)
        if cached is not None:
            image = copy.deepcopy(cached)
            return image, image.timestamp

        image = IIPImage(
            image_path=argument,
            filesystem_prefix=filesystem_prefix,
            filename_pattern=filename_pattern,
        )
        image.initialise()
        if self._images and len(self._images) >= self.max_size:
            self._images.popitem(last=False)
        return image, 0

    def store(self, argument: str, image: IIPImage) -> None:
        """Add or replace the cached description for ``argument``."""
        self._images[argument] = copy.deepcopy(image)


def check_supported(image: IIPImage, argument: str) -> ImageFormat:
    """Return the image's format, raising UnsupportedImage if it cannot be served."""
    if image.format not in SUPPORTED_FORMATS:
        raise UnsupportedImage(f"Unsupported image type: {argument}")
    return image.format


def check_not_modified(image_timestamp: int, if_modified_since: str) -> Optional[int]:
    """Compare an image timestamp with an If-Modified-Since header value.

    Raises NotModified if the image is no newer than the given date. Returns
    the parsed header time, or None if the header could not be parsed.
    """
    parsed = parsedate_tz(if_modified_since)
    if parsed is None:
        return None
    if parsed[9] is None:
        parsed = parsed[:9] + (0,)
    since = mktime_tz(parsed)
    if image_timestamp <= since:
        raise NotModified(if_modified_since)
    return since