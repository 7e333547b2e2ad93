"""Newsletter sources: sanitising and per-source parsing."""
