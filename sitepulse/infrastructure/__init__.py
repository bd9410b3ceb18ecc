# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Concrete adapters for the abstract interfaces in ``sitepulse.base``.
"""
