"""
Syllabus Structure Extraction Engine

Reconstructs the Subject -> Topic -> Subtopic -> Outcome/Competence
hierarchy from converted curriculum documents (plain text or tagged HTML),
with an AI fallback extractor when structural parsing finds nothing, and
stores the result in a portable SQLite database.
"""

__version__ = "0.1.0"
