"""
Mock adapter for testing and development.

Generates synthetic forum posts grouped around a handful of recurring
pain points, so a ``--mock`` run exercises every pipeline stage
(including clustering) without credentials or network access.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any

from trendflow.ingestion.base_adapter import BaseAdapter
from trendflow.ingestion.schemas import NormalizedRecord

PAIN_POINTS = {
    "invoicing": [
        "Chasing late invoices eats half my week. Clients ignore reminders and I hate nagging them.",
        "Is there a tool that automatically follows up on unpaid invoices? Spreadsheets are not cutting it.",
        "Freelancers, how do you handle clients that pay 60 days late? Cash flow is killing me.",
    ],
    "onboarding": [
        "Our SaaS churns users in the first week. Nobody finishes the onboarding checklist.",
        "Struggling with product tours. Users skip them and then ask support basic questions.",
        "What do you use for in-app onboarding that does not cost a fortune for an early startup?",
    ],
    "hiring": [
        "Hiring the first engineer as a non-technical founder is terrifying. How do I evaluate skill?",
        "Need help writing a take-home test that does not scare good candidates away.",
        "Recruiters want 20 percent of salary. Is there a cheaper way to find early employees?",
    ],
    "feedback": [
        "Customer feedback is scattered across email, Slack and support tickets. I cannot see patterns.",
        "How do you prioritize feature requests when every customer shouts the loudest?",
        "Looking for a lightweight way to close the loop with users who asked for a feature.",
    ],
}

SAMPLE_AUTHORS = ["indie_dev", "saas_founder", "bootstrapper42", "pm_lena", "solo_builder"]


class MockAdapter(BaseAdapter):
    """Returns ``limit`` deterministic records for a given ``seed``."""

    name = "mock"
    default_options = {"limit": 40, "seed": 7}

    async def _scrape(self, options: dict[str, Any]) -> list[NormalizedRecord]:
        rng = random.Random(options["seed"])
        now = datetime.now(timezone.utc)
        topics = list(PAIN_POINTS.items())

        records = []
        for index in range(options["limit"]):
            topic, sentences = topics[index % len(topics)]
            body = " ".join(rng.sample(sentences, k=len(sentences)))
            records.append(
                NormalizedRecord(
                    source=self.name,
                    source_id=f"mock_{index}",
                    url=f"https://example.com/mock/{index}",
                    title=f"[{topic}] {sentences[index % len(sentences)][:60]}",
                    body=body,
                    author=rng.choice(SAMPLE_AUTHORS),
                    created_at=now - timedelta(hours=rng.randint(1, 72)),
                    score=rng.randint(5, 500),
                    num_comments=rng.randint(0, 80),
                    language="en",
                    meta={"topic": topic},
                )
            )
        return records
