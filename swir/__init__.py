"""
SWIR package
============

Severe Weather Impact Report: ranks NOAA storm event types by harm to
population health and by economic damage.

- Dataset loading is in `swir/loader.py`.
- The two aggregators (and magnitude-code scaling) are in `swir/aggregate.py`.
- Charts and the DOCX report are in `swir/report.py`.
- `swir/pipeline.py` ties them together; the CLI entry point is `swir/cli.py`.
"""

__version__ = '0.1.0'
