"""
Backend package for the honors engagement API.

This package provides a FastAPI application over Firebase Auth and a document
store abstraction (Firestore, SQL or in-memory), plus the proposal optimizer
backed by Gemini.
"""
