"""Pluggable positional feeds.

Each feed turns one external data source into canonical
:class:`pysaga.models.Track` values behind the same :class:`FeedAdapter`
interface.
"""

from pysaga.feeds.barentswatch import BarentsWatchFeed
from pysaga.feeds.base import FeedAdapter
from pysaga.feeds.opensky import OpenSkyFeed

__all__ = ["BarentsWatchFeed", "FeedAdapter", "OpenSkyFeed"]
