"""
Supply Modules.

Orchestration layers over the Supply Kernel and Engines.  Each module
contains:
- Domain models (the nouns)
- ORM persistence models
- Workflows (state machines)
- Configuration schemas
- A service facade that owns transaction boundaries

Modules:
- Purchasing: purchase order lifecycle, approval, shipments, receiving
"""
