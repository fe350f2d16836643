"""Ingestion layer.

Helpers shared by feed adapters to turn raw records into normalised
tracks and to decide which positions are worth keeping.
"""

__all__: list[str] = []
