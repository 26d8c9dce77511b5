"""transmute: cycle-safe type conversion with JSON and Base64 capsule codecs."""

__version__ = "0.1.0"
