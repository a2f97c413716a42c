"""Infrastructure module.

Configuration, database access, persistence models and repositories.
"""
