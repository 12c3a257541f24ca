"""
Status History: a local snapshot of a status page's incident history.

Backfills past incidents from the status page's history listing, keeps
recent ones in sync through a stale-while-revalidate cache, and derives
a year-long severity heatmap and the current status label.
"""

__version__ = "1.0.0"
