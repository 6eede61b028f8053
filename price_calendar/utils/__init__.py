"""
Utility functions module.

Time Semantics:
- Provider timestamps are UTC epoch milliseconds
- Calendar dates are local dates; the viewer's timezone decides "today"
- Cache freshness uses wall-clock epoch milliseconds
"""
