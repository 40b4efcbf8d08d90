"""On-disk cache for parsed reports."""
