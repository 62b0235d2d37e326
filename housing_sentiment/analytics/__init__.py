"""
Analytics and diagnostic tools for econometric models.

This package contains:
- VECM residual diagnostics
"""
