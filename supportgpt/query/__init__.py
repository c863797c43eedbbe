"""
Query Module
============

Bounded Context for answering free-text questions over ingested cases.

Responsibilities:
- Forward the user's query to the knowledge base indexing the case store
- Return the generated summary with the case IDs it was grounded on
"""

__version__ = "1.0.0"
