"""
Core Infrastructure for ipa-server.

This package provides foundational components:
    - config.py: Configuration loading and validation
    - errors.py: Error codes and exception hierarchy
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
    - rate_limit.py: Per-client request quotas
"""
