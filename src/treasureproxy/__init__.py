"""Hour-bucketed caching proxy for hourly balloon position snapshots."""

__version__ = "0.1.0"
