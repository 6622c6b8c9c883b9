"""
Infrastructure Layer

Concrete implementations of the interfaces defined in the domain layer.

Components:
- adapters/: In-memory studio scheduler collaborator
- cache/: Memoization of derived structures
- events/: Structure change notification and invalidation tokens
"""
