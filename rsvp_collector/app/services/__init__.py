"""
Service layer abstraction.

Services encapsulate the business rules and talk to a storage backend,
so API handlers never depend on which persistence strategy is in use.
"""
