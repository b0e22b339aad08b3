"""Topic and direction synthesis over active clusters."""

from trendflow.topics.config import DirectionConfig
from trendflow.topics.llm_client import DirectionClient
from trendflow.topics.parsing import (
    extract_json_object,
    loads_strict,
    parse_directions,
    parse_payload,
    repair_structure,
    repair_syntax,
    strip_code_fences,
)
from trendflow.topics.repository import TopicRepository
from trendflow.topics.schemas import (
    ClusterSample,
    Direction,
    ExamplePassage,
    SynthesisResult,
    Topic,
    TopicMetrics,
    build_fallback_direction,
    pick_summary,
    pick_title,
)
from trendflow.topics.synthesizer import TopicSynthesizer

__all__ = [
    "ClusterSample",
    "Direction",
    "DirectionClient",
    "DirectionConfig",
    "ExamplePassage",
    "SynthesisResult",
    "Topic",
    "TopicMetrics",
    "TopicRepository",
    "TopicSynthesizer",
    "build_fallback_direction",
    "extract_json_object",
    "loads_strict",
    "parse_directions",
    "parse_payload",
    "pick_summary",
    "pick_title",
    "repair_structure",
    "repair_syntax",
    "strip_code_fences",
]
