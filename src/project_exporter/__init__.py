"""GitHub Project Exporter.

Prometheus exporter that republishes GitHub Projects (classic) counts:
projects per organization/repository, columns per project and cards per
column. Collection is pull-driven: every scrape walks the configured scopes,
served from a time-boxed cache shared across scrapes.
"""

__version__ = "0.1.0"
__commit__ = "HEAD"
