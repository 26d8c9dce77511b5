"""Domain layer: type descriptors, ranges, contexts, and errors.

This layer depends only on stdlib.
It must never import from services, formats, commands, or config.
"""
