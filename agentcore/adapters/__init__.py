"""
Adapters Layer
Concrete implementations of the ports.
"""
