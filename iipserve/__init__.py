"""Request parsing, reply geometry and image model for a pyramidal image server."""

__version__ = "1.1.0"
__all__ = ["environment", "rawtile", "image", "fif", "deepzoom", "iiif", "cvt"]