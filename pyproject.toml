[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "s3zipper"
version = "0.1.0"
description = "HTTP service that downloads the files directly under an S3 folder and returns them as one zip archive"
requires-python = ">=3.10"
keywords = ["s3", "zip", "download", "http", "server", "aws", "starlette"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Archiving",
]
dependencies = [
    "httpx>=0.27",
    "starlette>=0.37",
    "uvicorn>=0.29",
]

[project.optional-dependencies]
test = [
    "pytest>=8",
    "pytest-asyncio>=0.23",
    "respx>=0.21",
]

[project.scripts]
s3zipper = "s3zipper.app:main"

[tool.hatch.build.targets.wheel]
packages = ["s3zipper"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 120
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
check_untyped_defs = true
