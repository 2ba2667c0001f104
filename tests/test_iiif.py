import json

import pytest

from iipserve.iiif import (
    IIIF_PROFILE,
    IIIFError,
    ImageRequest,
    Region,
    info_json,
    parse_image_request,
    parse_quality,
    parse_region,
    parse_rotation,
    parse_size,
    redirect_response,
    split_request,
)
from iipserve.rawtile import ColourSpace


# split_request

def test_split_info_request():
    assert split_request("dir/image.tif/info.json") == ("dir/image.tif", "info.json", "")


def test_split_image_request():
    assert split_request("dir/image.tif/full/full/0/native.jpg") == (
        "dir/image.tif",
        "native.jpg",
        "full/full/0/native.jpg",
    )


def test_split_without_slash_signals_redirect():
    assert split_request("image.tif") == ("image.tif", "", "")


def test_split_not_enough_parameters():
    with pytest.raises(IIIFError, match="Not enough parameters"):
        split_request("image.tif/full/0/native.jpg")


# parse_region

def test_region_full():
    assert parse_region("FULL", 1000, 500) == Region(0.0, 0.0, 1.0, 1.0)


def test_region_pixels():
    region = parse_region("0,0,500,250", 1000, 500)
    assert region == Region(0.0, 0.0, 0.5, 0.5)


def test_region_percent():
    region = parse_region("pct:10,20,50,40", 1000, 500)
    assert region.left == pytest.approx(0.1)
    assert region.top == pytest.approx(0.2)
    assert region.width == pytest.approx(0.5)
    assert region.height == pytest.approx(0.4)


def test_region_square_landscape_is_centred():
    region = parse_region("square", 1000, 500)
    assert region.top == 0.0 and region.height == 1.0
    assert region.width * 1000 == pytest.approx(500)
    assert region.left * 2 + region.width == pytest.approx(1.0)


def test_region_square_portrait_is_centred():
    region = parse_region("square", 300, 900)
    assert region.left == 0.0 and region.width == 1.0
    assert region.top * 2 + region.height == pytest.approx(1.0)


def test_region_square_of_square_image_is_full():
    assert parse_region("square", 400, 400) == Region()


@pytest.mark.parametrize(
    "token", ["0,0,0,100", "0,0,100,-1", "1,2,3", "1,2,3,4,5", "pct:1,2,0,4"]
)
def test_region_invalid(token):
    with pytest.raises(IIIFError, match="incorrect region format"):
        parse_region(token, 1000, 500)


# parse_size

def test_size_full():
    assert parse_size("full", 800, 600, 5000) == (800, 600, True)


def test_size_percent_halves_both_sides():
    width, height, keep = parse_size("pct:50", 800, 600, 5000)
    assert width * 2 == 800 and height * 2 == 600 and keep is True


def test_size_forced_width_height_breaks_aspect():
    assert parse_size("300,200", 800, 600, 5000) == (300, 200, False)


def test_size_best_fit_keeps_aspect():
    assert parse_size("!300,200", 800, 600, 5000) == (300, 200, True)


def test_size_height_only_keeps_ratio():
    width, height, keep = parse_size(",300", 800, 600, 5000)
    assert height == 300 and keep is True
    assert width / height == pytest.approx(800 / 600, rel=0.01)


def test_size_width_only_keeps_ratio():
    width, height, keep = parse_size("400,", 800, 600, 5000)
    assert width == 400 and keep is True
    assert width / height == pytest.approx(800 / 600, rel=0.01)


def test_size_clamped_to_max_size():
    assert parse_size("10000,10000", 800, 600, 5000) == (5000, 5000, False)


def test_size_no_comma():
    with pytest.raises(IIIFError, match="no comma"):
        parse_size("300", 800, 600, 5000)


def test_size_zero_is_invalid():
    with pytest.raises(IIIFError, match="invalid size"):
        parse_size("0,100", 800, 600, 5000)


def test_size_bad_percent():
    with pytest.raises(IIIFError, match="invalid size"):
        parse_size("pct:abc", 800, 600, 5000)


def test_size_bad_width():
    with pytest.raises(IIIFError, match="invalid width"):
        parse_size("abc,100", 800, 600, 5000)


# parse_rotation

def test_rotation_plain():
    assert parse_rotation("90") == (90.0, 0)


def test_rotation_mirrored():
    assert parse_rotation("!0") == (0.0, 1)


def test_rotation_mirrored_180_is_vertical_flip():
    assert parse_rotation("!180") == (0.0, 2)


@pytest.mark.parametrize("token", ["45", "-90", "400"])
def test_rotation_unsupported_angle(token):
    with pytest.raises(IIIFError, match="rotation angles"):
        parse_rotation(token)


def test_rotation_not_a_number():
    with pytest.raises(IIIFError, match="invalid rotation"):
        parse_rotation("abc")


# parse_quality

@pytest.mark.parametrize("token", ["default.jpg", "native", "COLOR.JPG"])
def test_quality_colour(token):
    assert parse_quality(token) is ColourSpace.NONE


@pytest.mark.parametrize("token", ["gray.jpg", "grey"])
def test_quality_grey(token):
    assert parse_quality(token) is ColourSpace.GREYSCALE


def test_quality_only_jpeg():
    with pytest.raises(IIIFError, match="Only JPEG"):
        parse_quality("default.png")


def test_quality_unknown():
    with pytest.raises(IIIFError, match="unsupported quality"):
        parse_quality("bitonal.jpg")


# parse_image_request

def test_image_request_full():
    request = parse_image_request("full/full/0/default.jpg", 800, 600, 5000)
    assert request == ImageRequest(
        region=Region(), width=800, height=600, maintain_aspect=True,
        rotation=0.0, flip=0, colourspace=ColourSpace.NONE,
    )


def test_image_request_region_and_grey():
    request = parse_image_request("0,0,400,300/!200,150/!90/gray.jpg", 800, 600, 5000)
    assert request.region == Region(0.0, 0.0, 0.5, 0.5)
    assert (request.width, request.height) == (200, 150)
    assert request.rotation == 90.0 and request.flip == 1
    assert request.colourspace is ColourSpace.GREYSCALE


def test_image_request_too_few():
    with pytest.raises(IIIFError, match="too few"):
        parse_image_request("full/full/0", 800, 600, 5000)


def test_image_request_too_many():
    with pytest.raises(IIIFError, match="too many"):
        parse_image_request("full/full/0/default.jpg/extra", 800, 600, 5000)


def test_image_request_propagates_parameter_errors():
    with pytest.raises(IIIFError, match="rotation"):
        parse_image_request("full/full/33/default.jpg", 800, 600, 5000)


# info_json

def _info(max_size=0):
    return info_json(
        "image-id", 1000, 800, [1000, 500, 250], [800, 400, 200], 256, 256, max_size
    )


def test_info_json_is_valid_json():
    doc = json.loads(_info())
    assert doc["@id"] == "image-id"
    assert doc["@context"] == "http://iiif.io/api/image/2/context.json"
    assert doc["protocol"] == "http://iiif.io/api/image"
    assert (doc["width"], doc["height"]) == (1000, 800)


def test_info_json_sizes_exclude_full_resolution():
    doc = json.loads(_info())
    assert doc["sizes"] == [
        {"width": 250, "height": 200},
        {"width": 500, "height": 400},
    ]


def test_info_json_sizes_respect_max_size():
    doc = json.loads(_info(max_size=400))
    assert doc["sizes"] == [{"width": 250, "height": 200}]


def test_info_json_tiles_and_profile():
    doc = json.loads(_info())
    tiles = doc["tiles"][0]
    assert (tiles["width"], tiles["height"]) == (256, 256)
    assert tiles["scaleFactors"] == [1, 2, 4]
    assert doc["profile"][0] == IIIF_PROFILE
    assert doc["profile"][1]["formats"] == ["jpg"]


# redirect_response

def test_redirect_response():
    assert redirect_response("http://localhost/iiif/image.tif", "1.1") == (
        "Status: 303 See Other\r\n"
        "Location: http://localhost/iiif/image.tif/info.json\r\n"
        "Server: iipsrv/1.1\r\n"
        "\r\n"
    )