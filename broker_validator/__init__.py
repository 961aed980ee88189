"""
Broker Validator — Validation and deduplication for scraped broker records.

Architecture: Required fields + Phone + Email + Completeness + Duplicates → Report
Philosophy:  Bad data is a result, not an exception. Every record gets a verdict.
"""

__version__ = "1.0.0"
