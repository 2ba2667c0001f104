[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "iipserve"
version = "1.1.0"
description = "Request parsing and image model for a pyramidal image server: DeepZoom, IIIF and region export"
requires-python = ">=3.10"
dependencies = []
keywords = ["iiif", "deepzoom", "image server", "tiles", "pyramid"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["iipserve"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
