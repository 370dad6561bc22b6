"""Document download and the per-issue document pipeline."""

from src.lyricbot.processing.fetcher import DocumentFetcher, DocumentFetchError
from src.lyricbot.processing.models import Declined, PipelineOutcome, Success
from src.lyricbot.processing.pipeline import DocumentPipeline, sort_lines

__all__ = [
    "Declined",
    "DocumentFetchError",
    "DocumentFetcher",
    "DocumentPipeline",
    "PipelineOutcome",
    "Success",
    "sort_lines",
]
