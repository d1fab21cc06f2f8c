"""Infrastructure Layer — storage, credential and token adapters plus logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Library exceptions are mapped to core/errors.py types at this boundary
"""
