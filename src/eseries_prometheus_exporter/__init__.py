"""E-Series Prometheus Exporter.

Multi-target Prometheus exporter for NetApp E-Series storage arrays that
collects drive, storage system, pool, volume and performance statistics via
the SANtricity Web Services Proxy REST API.
"""

__version__ = "0.1.0"
