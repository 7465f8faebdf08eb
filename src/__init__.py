"""
Mission Feasibility Checker

Validates uploaded flight missions against the vehicle's capabilities.
"""

__version__ = "0.1.0"
