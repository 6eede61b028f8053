"""
Price data acquisition and normalization module.

Handles provider endpoint layout, conversion of provider payloads into the
canonical price series, and the canonical data models shared by the cache,
calendar projection and refresh scheduling.
"""
