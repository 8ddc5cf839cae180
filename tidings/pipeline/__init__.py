"""Commit processing pipeline."""

from tidings.pipeline.filters import CommitFilterPipeline
from tidings.pipeline.grouper import Grouper

__all__ = ["CommitFilterPipeline", "Grouper"]
