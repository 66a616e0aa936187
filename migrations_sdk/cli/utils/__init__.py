"""
CLI utilities.
"""
