# iipserve

Building blocks for a server that delivers pyramidal images over HTTP. These
are tiled, multi-resolution TIFF and JPEG2000 files. The package parses the
request protocols such a server speaks, works out the geometry of the
replies and builds their headers and descriptor documents. It also holds the
data model for images and tiles.

## Modules

- `iipserve.environment`
  - `ServerSettings` is a frozen dataclass with the server defaults.
  - `ServerSettings.from_environ(environ=None)` reads a mapping, or
    `os.environ` when none is given. It looks for these keys:
    - `VERBOSITY`, `LOGFILE` and `MAX_IMAGE_CACHE_SIZE`
    - `FILENAME_PATTERN` and `JPEG_QUALITY`
    - `MAX_CVT` and `MAX_LAYERS`
    - `FILESYSTEM_PREFIX`, `WATERMARK`, `WATERMARK_PROBABILITY` and
      `WATERMARK_OPACITY`
    - `MEMCACHED_SERVERS` and `MEMCACHED_TIMEOUT`
    - `INTERPOLATION`, `CORS`, `BASE_URL`, `CACHE_CONTROL` and
      `ALLOW_UPSCALING`
  - Numbers are read leniently: a leading number is used and anything that
    is not a number counts as 0.
  - Limits are applied after reading:
    - `VERBOSITY` is at least 0.
    - `JPEG_QUALITY` is 1–100.
    - `MAX_CVT` is at least 64.
    - The watermark probability and opacity are 0–1.
- `iipserve.rawtile`
  - `RawTile` is a tile or region of pixel data.
  - `copy()` makes an independent copy of the tile and its data.
  - `size` is the data length in bytes.
  - Two tiles are equal when their tile number, resolution, sequence
    angles, compression, quality and filename match.
  - The module also defines the enumerations `ColourSpace`,
    `CompressionType` and `SampleType`.
- `iipserve.image`
  - `detect_format(header)` identifies TIFF, BigTIFF and JPEG2000 from the
    file's magic bytes and returns an `ImageFormat`.
  - `http_date(timestamp)` formats an RFC 1123 date in GMT.
  - `IIPImage` describes an image source, which is either a single file or
    a sequence of files named `<path><pattern>XXX_YYY.<suffix>`.
  - `IIPImage.initialise()` examines the file on disk. For a sequence it
    also collects the horizontal and vertical angles that exist.
  - `IIPImage.file_name(x, y)` gives the path of the file for the given
    angles.
  - Errors on disk raise `FileError`.
- `iipserve.fif`
  - `decode_path(src)` URL-decodes an image path and removes every `../`.
  - `ImageCache` is a bounded cache of image descriptions. It holds 1000
    entries by default and evicts the oldest first.
    - `lookup(argument, filesystem_prefix, filename_pattern)` returns a copy
      of the image together with the cached timestamp. On a cache miss the
      image is examined on disk and the timestamp is 0.
    - `store(argument, image)` adds or replaces an entry.
  - `check_supported(image, argument)` raises `UnsupportedImage` for
    anything but TIFF.
  - `check_not_modified(image_timestamp, if_modified_since)` compares the
    image with an `If-Modified-Since` value. It raises `NotModified`
    (status 304) when the image is no newer than that date.
- `iipserve.deepzoom`
  - `parse_request(argument)` splits `image.dzi` or
    `image_files/r/x_y.jpg` into a `DeepZoomRequest`.
  - `dzi_levels(width, height)` counts the DeepZoom levels.
  - `map_resolution(requested, dzi_res, num_resolutions)` maps a DeepZoom
    level onto an available image resolution.
  - `tile_index(width, tile_width, x, y)` gives the linear tile number.
  - `dzi_response(...)` builds the headers and XML of the `.dzi` reply.
- `iipserve.iiif`
  - `split_request(argument)` separates the identifier from an
    `info.json` suffix or from the image parameters.
  - Each parameter has its own parser: `parse_region`, `parse_size`,
    `parse_rotation` and `parse_quality`.
  - `parse_image_request(params, width, height, max_size)` parses all four
    parameters into an `ImageRequest`, with a `Region` given as fractions of
    the full image.
  - `info_json(...)` builds the Image API 2 `info.json` document.
  - `redirect_response(identifier, version)` builds the 303 redirect to it.
  - Malformed or unsupported requests raise `IIIFError`.
- `iipserve.cvt`
  - `output_size(...)` works out the final size of a region export. It
    follows the upscaling rule and keeps the aspect ratio, with a 0.5%
    tolerance.
  - `strip_heights(height, strip_height=128)` gives the heights of the
    JPEG compression strips.
  - `output_channels(channels)` gives the number of channels sent: an alpha
    channel or extra bands are dropped.
  - `image_basename(path)` gives the file name without its directory and
    suffix.
  - `cvt_headers(...)` builds the headers of the JPEG reply.

## Example

```python
from iipserve.iiif import parse_image_request

request = parse_image_request("full/512,/0/default.jpg", 4000, 3000, 5000)
print(request.width, request.height)  # 512 384
```

```python
from iipserve.deepzoom import dzi_levels, map_resolution, parse_request

req = parse_request("image.tif_files/12/3_4.jpg")
print(req.prefix, req.resolution, req.x, req.y)  # image.tif 12 3 4
print(dzi_levels(4000, 3000))  # 12
```

## What it does not do

The package has no HTTP or FastCGI server and no command to start one.

It does not decode pixel data from TIFF or JPEG2000 files.
`IIPImage.open_image()` raises `FileError`. `check_supported` accepts TIFF
images only.

It does not encode JPEG data, assemble tiles into regions, or apply image
filters such as contrast, gamma, rotation or resizing. The caller supplies
these parts. The package provides the request parsing, the sizes, the
headers and the descriptor documents around them.

## Installing

```
pip install .
```

To run the tests, install the test extra and run pytest:

```
pip install .[test]
pytest
```