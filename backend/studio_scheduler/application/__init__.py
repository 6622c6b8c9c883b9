"""
Application Layer

Use cases over the structure engine: loading job snapshots and deriving their
structure, reclassifying tasks and synchronizing tasks from orders. Services
here coordinate the collaborator gateway, the structure cache and the change
notifier; the domain layer stays free of I/O.
"""
