"""HTTP search API."""
