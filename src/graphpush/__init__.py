"""graphpush — persist program-analysis graphs into a graph database."""

__version__ = "0.1.0"
