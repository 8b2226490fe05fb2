"""ReelDeck: preference learning and deduplicated sampling for a discovery deck."""

__version__ = "0.1.0"
