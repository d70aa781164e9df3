"""
Revenue Recognition Kernel

Domain values, typed errors, structured logging and the persistence
adapter shared by the calculation engines and the services:
- Exact two-place decimal money
- Calendar-month schedule keys
- Append-only schedule history (posted rows are immutable)
"""

__version__ = "0.1.0"
