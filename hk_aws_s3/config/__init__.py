"""
Configuration for the storage facade.
"""
