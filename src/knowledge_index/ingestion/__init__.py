"""
Ingestion — chunk planning, materialization, and embedding.

This module turns raw document text into offset-addressable chunks and
their vectors.  Nothing here talks to the vector store; persistence lives
in :mod:`knowledge_index.retrieval.sync`.
"""
