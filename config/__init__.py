"""
Pipeline configuration.
"""
