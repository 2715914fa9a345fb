"""
Shared utilities (console output, node rendering).
"""
