"""HTTP service and library that bundle the files of an S3 folder into a zip archive."""

__version__ = "0.1.0"
__all__ = ["__version__"]