"""
Infrastructure Layer

Adapters for processes, filesystem, configuration, logging and metrics.
"""
