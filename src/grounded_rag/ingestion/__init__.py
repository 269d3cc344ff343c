"""
Ingestion — document scanning, chunking, embedding and upsert into the vector store.

This module is responsible for the change-aware pipeline that converts
documents on disk (PDF, text, Markdown) into embedded chunks stored in a
vector database, recording what was indexed in a persisted ledger.
"""
