"""
DeckReview - Voice-Driven Project Presentation Review

Reviews a candidate's project presentation, screens it for AI-generated
content, questions the candidate at rising difficulty and recommends
whether to proceed.
"""

__version__ = "0.1.0"
__author__ = "DeckReview Team"
