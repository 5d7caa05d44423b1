"""pict_employment package initializer.

This package contains the data pipeline behind the Pacific Islands
employment dashboard.  Modules include CSV loading, the grouped
observation table, the five chart projections, caching and plotting
helpers.  See individual module docstrings for details.
"""
