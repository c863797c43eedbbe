"""
Infrastructure Layer
=====================

Connections to external systems shared by the bounded contexts:
- Database engine and sessions (SQLAlchemy async)
- AWS service clients (boto3)
"""
