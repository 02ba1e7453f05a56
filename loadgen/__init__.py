"""Synthetic omap load generator for Ceph RADOS objects."""

__version__ = "1.0.0"
