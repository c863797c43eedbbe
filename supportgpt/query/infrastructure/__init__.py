"""
Query Infrastructure Layer
===========================

Contains:
- External: Bedrock knowledge base adapter
"""

from supportgpt.query.infrastructure.external import (
    BedrockKnowledgeBase, create_query_service, model_arn_for
)

__all__ = ["BedrockKnowledgeBase", "create_query_service", "model_arn_for"]
