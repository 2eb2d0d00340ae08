"""mdnotes — local markdown note store with tagging and search."""

__version__ = "1.0.0"
