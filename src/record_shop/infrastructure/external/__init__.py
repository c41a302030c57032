"""
External Service Adapters.

Anti-corruption layers for third-party metadata services.
"""

from .musicbrainz_adapter import MusicBrainzAdapter, MusicBrainzRelease

__all__ = [
    "MusicBrainzAdapter",
    "MusicBrainzRelease",
]
