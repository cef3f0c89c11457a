[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pulsegraph"
version = "0.1.0"
description = "Block-based audio signal nodes: routing, signal sources, filters, envelopes, delays and samplers"
requires-python = ">=3.10"
dependencies = []
keywords = ["audio", "dsp", "synthesis", "filters", "envelopes", "sampler"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pulsegraph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
