"""Video submission."""

from reelsync.ingest.submission import SubmissionService

__all__ = ["SubmissionService"]
