[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "isotarp"
version = "0.1.12"
description = "Identify which tests of a Rust package cover which lines, which coverage is unique, and which tests are redundant"
requires-python = ">=3.10"
dependencies = []
keywords = ["coverage", "isotarp", "tarpaulin", "testing", "cargo"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
isotarp = "isotarp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["isotarp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]
