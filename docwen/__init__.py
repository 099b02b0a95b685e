"""docwen: compare function documentation across related C/C++ files."""

__version__ = "0.1.0"
