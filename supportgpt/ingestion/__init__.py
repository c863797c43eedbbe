"""
Ingestion Module
================

Bounded Context for incremental support case ingestion.

Responsibilities:
- Page through the Support API for cases newer than the checkpoint
- Fetch and join each case's communications into one text block
- Write cases to the case store in fixed-size batch files
- Advance the checkpoint only after each batch is durably written
"""

__version__ = "1.0.0"
