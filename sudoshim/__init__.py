"""sudoshim: redirect sudo, visudo and sudoedit to doas or run0."""

__version__ = "0.3.0"
