"""
TeraSky Insights - container orchestrator for cloud assessment packages.

Launches the assessment container, waits for its services to come up,
runs the selected package and copies the generated report back to the
host.
"""

__version__ = "0.1.0"
__author__ = "TeraSky"
