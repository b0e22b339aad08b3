"""Sequential pipeline driver."""

from trendflow.pipeline.driver import PipelineDriver, PipelineReport

__all__ = ["PipelineDriver", "PipelineReport"]
