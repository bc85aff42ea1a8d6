"""
Command-line interface for Vigil.
"""
