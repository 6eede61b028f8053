"""
Client-side persistence: key-value stores, the long-window series cache and
the selected-instrument repository.
"""
