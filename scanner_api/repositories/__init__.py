"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area and leave
transaction boundaries to the services that use them.
"""
