"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Structured logging setup
- Trace ID propagation
"""
