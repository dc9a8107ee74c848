"""Collectors package for E-Series metrics.

Contains one collector per E-Series entity. Each module exposes its registry
name as NAME and a collector class built from a target and the scrape's
shared instrumentation.
"""
