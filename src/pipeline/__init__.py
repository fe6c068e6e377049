"""
Pipeline Module for the Syllabus Structure Extraction Engine

Per-document steps (Step 0-4) and the runner that chains them:
validation, conversion, structure extraction, AI fallback, storage.
"""

__all__ = []
