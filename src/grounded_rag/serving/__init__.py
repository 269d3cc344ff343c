"""
Serving — FastAPI application for status, ingestion triggers and Q&A.

On startup the application runs one ingestion pass in the background so
that documents placed in the documents directory are indexed before the
first question arrives.
"""
