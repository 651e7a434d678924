"""Shared helpers.

- batch: Ordered thread-pool fan-out and parallel unit construction
"""
