"""Batch commands behind the ``clusage`` CLI."""
