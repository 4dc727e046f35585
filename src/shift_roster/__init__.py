"""
Shift Roster Tracking for %60 and %30 Scheduling Systems

Resolves a worker's shift for any day from the automatic 8-day rotation
or a manually entered monthly roster, with manual overrides, Excel
roster import, calendar export and monthly reporting.
"""

__version__ = "1.0.0"
__author__ = "Shift Roster Team"
