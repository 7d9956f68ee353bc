"""
Test fixtures for linestream.

Provides mock byte sources and sample inputs.
"""

from .streaming_fixtures import RecordingSource, StallingSource, StreamingFixtures, collect

__all__ = [
    "RecordingSource",
    "StallingSource",
    "StreamingFixtures",
    "collect",
]
