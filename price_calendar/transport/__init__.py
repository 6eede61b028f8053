"""
HTTP transport for the upstream market-data API.
"""
