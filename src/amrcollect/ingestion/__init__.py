"""Ingestion layer.

This package turns rtlamr output lines into normalized points: envelope
decoding, per-protocol payload decoding, strict-mode filtering and point
building.
"""

__all__: list[str] = []
