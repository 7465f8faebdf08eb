"""
REST interface
"""
