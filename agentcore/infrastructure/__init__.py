"""
Infrastructure Layer
Repository implementations (in-memory and PostgreSQL).
"""
