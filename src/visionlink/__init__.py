"""visionlink - multi-source video link resolver."""

__version__ = "0.1.0"
