"""
Daily Git Brief core library.

Collects the daily trending repositories, enriches them with language
composition and an LLM summary, and computes language trend rollups.
"""

__version__ = "1.0.0"
