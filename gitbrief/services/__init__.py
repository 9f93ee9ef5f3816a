"""
Pipeline services: retry policy, README summarizer and progress tracking.
"""

from gitbrief.services.progress import ProgressSubscription, ProgressTracker
from gitbrief.services.retry import RetryPolicy
from gitbrief.services.summarizer import EMPTY_README_SUMMARY, Summarizer, SummaryError

__all__ = [
    "ProgressTracker",
    "ProgressSubscription",
    "RetryPolicy",
    "Summarizer",
    "SummaryError",
    "EMPTY_README_SUMMARY",
]
