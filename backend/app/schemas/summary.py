# app/schemas/summary.py
"""
Pydantic schemas for the summarise endpoint.
Defines the request body, the summary shape the AI relay must produce, and the response.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

class SummariseIn(BaseModel):
    """
    Request model for summarisation.
    Fields are optional at the schema level so that a missing key or text
    is reported as MISSING_INPUT (400) instead of a generic 422.
    """
    licenseKey: Optional[str] = None  # Key entered in the extension popup
    title: Optional[str] = None  # Page title
    text: Optional[str] = None  # Page text (truncated server-side)

class Summary(BaseModel):
    """Structured summary returned by the AI relay."""
    headline: str  # One sentence, max ~15 words
    bullets: List[str] = Field(min_length=3, max_length=3)  # Exactly three key points
    readTime: str  # e.g. "4 min read"

class SummariseOut(BaseModel):
    result: Summary
