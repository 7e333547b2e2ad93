"""Content batching and rate-limited model analysis."""
