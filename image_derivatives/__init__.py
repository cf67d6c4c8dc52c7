"""On-demand image conversion and resizing service with a derivative cache."""

__version__ = "0.1.0"
