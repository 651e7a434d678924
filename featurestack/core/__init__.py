"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (ring minimums, default fields and drivers)
- exceptions: Custom exception hierarchy
"""
