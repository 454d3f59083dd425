"""Filesystem traversal and scan orchestration."""
