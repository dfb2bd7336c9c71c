"""sofa-ci - build pipeline driver for CI jobs."""

__version__ = "0.3.0"
