"""Infrastructure layer — database backends, graph traversal, analyzer.

This layer depends on stdlib and third-party libs (neo4j, SQLAlchemy,
NetworkX). It must never import from services, commands, or output.
The service layer bridges between domain models and infrastructure.
"""
