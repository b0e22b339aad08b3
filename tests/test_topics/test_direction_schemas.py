"""Tests for Direction normalization and topic metadata."""

from trendflow.topics.schemas import (
    PENDING_CN,
    PENDING_EN,
    Direction,
    ExamplePassage,
    TopicMetrics,
    build_fallback_direction,
    pick_summary,
    pick_title,
)


class TestDirection:
    def test_from_raw_coerces_types(self):
        direction = Direction.from_raw(
            {
                "direction_title": "Churn radar",
                "summary": 42,
                "risks": "not a list",
                "evidence": ["[0] churn after onboarding", None],
            }
        )

        assert direction.summary == ""
        assert direction.risks == []
        assert direction.evidence == ["[0] churn after onboarding"]

    def test_title_falls_back_to_english_name(self):
        direction = Direction.from_raw({"direction_title": " ", "direction_name_en": "Hiring copilot"})

        assert direction.direction_title == "Hiring copilot"

    def test_non_object_or_untitled(self):
        assert Direction.from_raw(["a"]) is None
        assert Direction.from_raw({"summary": "x"}) is None


class TestFallbackDirection:
    def test_placeholder_shape(self):
        direction = build_fallback_direction("cluster_1_0", 12)

        assert direction.direction_title == "产品方向 - cluster_1_0"
        assert direction.direction_name_en == "Direction - cluster_1_0"
        assert direction.summary_en == "Based on 12 related discussions"
        assert direction.target_audience_en == PENDING_EN
        assert direction.pain_point == PENDING_CN
        assert direction.mvps == []

    def test_deterministic(self):
        assert build_fallback_direction("x", 3) == build_fallback_direction("x", 3)


class TestPickers:
    def test_title_prefers_chinese_name(self):
        direction = Direction(direction_title="T", direction_name_cn="中文", direction_name_en="EN")

        assert pick_title(direction, "label") == "中文"

    def test_title_falls_back_to_direction_title(self):
        assert pick_title(Direction(direction_title="T"), "label") == "T"

    def test_summary_chain(self):
        assert pick_summary(Direction(direction_title="T", summary_en="en", summary="s"), 3) == "en"
        assert pick_summary(Direction(direction_title="T", summary="s"), 3) == "s"

    def test_summary_composed_when_absent(self):
        assert pick_summary(Direction(direction_title="T"), 8) == "Pending - Based on 8 discussions"
        composed = pick_summary(Direction(direction_title="T", target_user="freelancers", pain_point="late pay"), 8)
        assert composed == "freelancers - late pay"


class TestTopicMetrics:
    def test_round_trip_through_dict(self):
        metrics = TopicMetrics(count=5, cluster_id=9, directions=[Direction(direction_title="A")])

        restored = TopicMetrics.from_dict(metrics.to_dict())

        assert restored == metrics

    def test_from_dict_tolerates_missing_and_bad_entries(self):
        metrics = TopicMetrics.from_dict({"cluster_id": "4", "directions": [{"nope": 1}]})

        assert metrics.cluster_id == 4
        assert metrics.count == 0
        assert metrics.directions == []
        assert TopicMetrics.from_dict(None) == TopicMetrics()


class TestExamplePassage:
    def test_from_dict_defaults(self):
        assert ExamplePassage.from_dict({}) == ExamplePassage(text="", record_id=None)
