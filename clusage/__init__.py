"""
clusage - interactive terminal history viewer for Claude usage snapshots.
"""

__version__ = "0.3.0"
