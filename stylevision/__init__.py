"""StyleVision: camera capture guidance and generative-AI style recommendations."""

__version__ = "1.0.0"
