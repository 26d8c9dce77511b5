"""Formats layer: text codecs built on the conversion dispatch machinery.

``JsonCodec`` reads and writes JSON with ``this<N>`` back-references;
``CapsuleCodec`` wraps any supported value in an opaque Base64 literal.
"""

from transmute.formats.capsule import CapsuleCodec
from transmute.formats.json_format import JsonCodec

__all__ = ["CapsuleCodec", "JsonCodec"]
