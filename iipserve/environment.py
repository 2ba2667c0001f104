"""Server settings read from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _leading_int(text: str) -> int:
    """Parse a leading integer the lenient way: garbage yields 0."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _leading_float(text: str) -> float:
    """Parse a leading float the lenient way: garbage yields 0.0."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ServerSettings:
    """Configuration of the image server, with the built-in defaults."""

    verbosity: int = 1
    logfile: str = "/tmp/iipsrv.log"
    max_image_cache_size: float = 10.0
    filename_pattern: str = "_pyr_"
    jpeg_quality: int = 75
    max_cvt: int = 5000
    max_layers: int = 0
    filesystem_prefix: str = ""
    watermark: str = ""
    watermark_probability: float = 1.0
    watermark_opacity: float = 1.0
    memcached_servers: str = "localhost"
    memcached_timeout: int = 86400
    interpolation: int = 1
    cors: str = ""
    base_url: str = ""
    cache_control: str = "max-age=86400"
    allow_upscaling: bool = True

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """Build settings from a mapping of environment variables (default: os.environ)."""
        env = os.environ if environ is None else environ
        values = {}

        if "VERBOSITY" in env:
            values["verbosity"] = max(0, _leading_int(env["VERBOSITY"]))
        if "LOGFILE" in env:
            values["logfile"] = env["LOGFILE"]
        if "MAX_IMAGE_CACHE_SIZE" in env:
            values["max_image_cache_size"] = _leading_float(env["MAX_IMAGE_CACHE_SIZE"])
        if "FILENAME_PATTERN" in env:
            values["filename_pattern"] = env["FILENAME_PATTERN"]
        if "JPEG_QUALITY" in env:
            values["jpeg_quality"] = int(_clamp(_leading_int(env["JPEG_QUALITY"]), 1, 100))
        if "MAX_CVT" in env:
            values["max_cvt"] = max(64, _leading_int(env["MAX_CVT"]))
        if "MAX_LAYERS" in env:
            values["max_layers"] = _leading_int(env["MAX_LAYERS"])
        if "FILESYSTEM_PREFIX" in env:
            values["filesystem_prefix"] = env["FILESYSTEM_PREFIX"]
        if "WATERMARK" in env:
            values["watermark"] = env["WATERMARK"]
        if "WATERMARK_PROBABILITY" in env:
            values["watermark_probability"] = _clamp(
                _leading_float(env["WATERMARK_PROBABILITY"]), 0.0, 1.0
            )
        if "WATERMARK_OPACITY" in env:
            values["watermark_opacity"] = _clamp(
                _leading_float(env["WATERMARK_OPACITY"]), 0.0, 1.0
            )
        if "MEMCACHED_SERVERS" in env:
            values["memcached_servers"] = env["MEMCACHED_SERVERS"]
        if "MEMCACHED_TIMEOUT" in env:
            values["memcached_timeout"] = _leading_int(env["MEMCACHED_TIMEOUT"])
        if "INTERPOLATION" in env:
            values["interpolation"] = _leading_int(env["INTERPOLATION"])
        if "CORS" in env:
            values["cors"] = env["CORS"]
        if "BASE_URL" in env:
            values["base_url"] = env["BASE_URL"]
        if "CACHE_CONTROL" in env:
            values["cache_control"] = env["CACHE_CONTROL"]
        if "ALLOW_UPSCALING" in env:
            values["allow_upscaling"] = _leading_int(env["ALLOW_UPSCALING"]) != 0

        return cls(**values)