"""
Commit statistics extraction.

The modules in this package are pure: they operate on git output that
has already been fetched and on caller-supplied fetch callables, so
they can be unit tested without a repository.
"""

from .aggregator import aggregate_contributors  # noqa: F401
from .collector import collect_contributor_diffs, fetch_in_order, summarize_history  # noqa: F401
from .diff_filter import FileBlock, filter_noise, parse_file_blocks  # noqa: F401
from .summary_parser import parse_stat_totals, summarize_commit  # noqa: F401
