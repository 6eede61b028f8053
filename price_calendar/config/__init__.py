"""
Configuration defaults, YAML loading with 3-tier precedence, and validation.
"""
