[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tsmux"
version = "0.2.2"
description = "MPEG-2 transport stream packet codec and H.264/H.265 video muxer"
requires-python = ">=3.10"
dependencies = []
keywords = ["mpegts", "mpeg2ts", "transport-stream", "muxer", "parser", "video"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tsmux"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
