"""Offline provider that fabricates plausible responses.

Responses are chosen by a random generator seeded from the request, so the
same content always yields the same summary, tags and scores.
"""

import asyncio
import hashlib
import json
import random
from typing import Optional

from focus_feed.adapters.llm.base_provider import BaseAIProvider
from focus_feed.core import AIModelConfig, AIRequest, AIResponse, ConfigError, ContentSummary, TokenUsage

SUMMARIES = [
    "This article discusses the latest developments in AI technology and its impact on software development.",
    "The content explores practical applications of machine learning in modern product development.",
    "This piece examines emerging trends in artificial intelligence and their implications for developers.",
    "The article presents insights into AI-powered tools and their role in enhancing developer productivity.",
]

KEY_POINTS = [
    ["AI is transforming software development", "New tools are emerging rapidly", "Productivity gains are significant"],
    ["Machine learning is becoming mainstream", "Integration challenges remain", "Best practices are still evolving"],
    ["Automation is key to future development", "Human oversight remains crucial", "Skills adaptation is necessary"],
    ["AI tools enhance rather than replace developers", "Learning curve considerations", "Cost-benefit analysis is important"],
]

INSIGHTS = [
    "AI integration requires careful consideration of user experience and workflow disruption",
    "Investment in developer education is crucial for successful technology adoption",
    "Balancing automation with human oversight keeps output quality high",
    "Success depends on understanding the problem domain more than the technology",
    "Iterative development and continuous feedback loops are essential for AI products",
    "Cost analysis should include both implementation costs and long-term productivity gains",
    "Technical debt grows more complex when integrating AI into existing architectures",
    "Data quality often matters more than algorithm choice",
    "Cross-functional collaboration between engineers and domain experts is critical",
]

ALL_TAGS = [
    "ai", "machine-learning", "artificial-intelligence", "deep-learning", "neural-networks",
    "javascript", "typescript", "python", "react", "nodejs", "api", "database",
    "product-development", "user-experience", "design", "startup", "saas", "automation",
    "cloud-computing", "docker", "kubernetes", "microservices", "devops",
    "frontend", "backend", "fullstack", "mobile", "web-development", "programming",
    "software-engineering", "architecture", "performance", "security", "testing",
]

AI_TERMS = ["ai", "artificial intelligence", "machine learning", "ml", "neural", "llm", "gpt", "claude"]
TECH_TERMS = ["javascript", "python", "react", "typescript", "api", "database", "cloud", "docker"]
PRODUCT_TERMS = ["product", "user", "ux", "ui", "design", "startup", "saas", "app"]


class MockAIProvider(BaseAIProvider):
    """Provider for development and tests; never touches the network."""

    name = "mock"
    supported_models = ("mock-gpt", "mock-claude", "mock-local")

    def __init__(self, min_delay: float = 0.1, max_delay: float = 0.5) -> None:
        super().__init__()
        self.min_delay = min_delay
        self.max_delay = max_delay

    async def _validate_config(self, config: AIModelConfig) -> None:
        if config.model not in self.supported_models:
            raise ConfigError(f"Unsupported mock model: {config.model}")

    async def _make_api_request(self, request: AIRequest) -> AIResponse:
        text = self._generate_response(request)
        return AIResponse(
            content=text,
            usage=TokenUsage(
                prompt_tokens=len(request.prompt) // 4,
                completion_tokens=len(text) // 4,
                total_tokens=(len(request.prompt) + len(text)) // 4,
            ),
            model=self.config.model if self.config else "mock-gpt",
            provider=self.name,
        )

    async def generate_summary(
        self, content: str, focus_area: Optional[str] = None
    ) -> ContentSummary:
        if self.max_delay > 0:
            rng = _seeded(content)
            await asyncio.sleep(rng.uniform(self.min_delay, self.max_delay))
        return await super().generate_summary(content, focus_area)

    def _generate_response(self, request: AIRequest) -> str:
        content = request.content.lower()
        prompt = request.prompt.lower()
        rng = _seeded(request.content)

        if "json" in prompt and "summary" in prompt:
            return self._mock_summary(content, rng)
        # "generate" contains "rate", so tags are matched first
        if "tags" in prompt:
            return ", ".join(self._mock_tags(content, rng))
        if "relevance" in prompt or "rate" in prompt:
            return self._mock_relevance(content, rng)
        if "insights" in prompt or "takeaways" in prompt:
            return "\n".join(f"{i}. {text}" for i, text in enumerate(self._mock_insights(rng), 1))
        return "Mock AI response for development and testing purposes."

    def _mock_summary(self, content: str, rng: random.Random) -> str:
        index = rng.randrange(len(SUMMARIES))
        return json.dumps(
            {
                "summary": SUMMARIES[index],
                "keyPoints": KEY_POINTS[index],
                "tags": self._mock_tags(content, rng)[:5],
                "insights": self._mock_insights(rng),
                "confidence": round(0.7 + rng.random() * 0.25, 3),
            },
            indent=2,
        )

    def _mock_relevance(self, content: str, rng: random.Random) -> str:
        score = 0.3
        score += 0.15 * sum(1 for term in AI_TERMS if term in content)
        score += 0.05 * sum(1 for term in TECH_TERMS if term in content)
        score += 0.08 * sum(1 for term in PRODUCT_TERMS if term in content)
        score += (rng.random() - 0.5) * 0.1
        return f"{max(0.0, min(1.0, score)):.2f}"

    def _mock_tags(self, content: str, rng: random.Random) -> list[str]:
        tags: list[str] = []
        if rng.random() > 0.3:
            tags.extend(["ai", "machine-learning"])

        for tag in ALL_TAGS:
            if tag.replace("-", " ") in content or tag.replace("-", "") in content:
                if tag not in tags:
                    tags.append(tag)

        while len(tags) < 3:
            tag = rng.choice(ALL_TAGS)
            if tag not in tags:
                tags.append(tag)

        return tags[:6]

    def _mock_insights(self, rng: random.Random) -> list[str]:
        start = rng.randrange(len(INSIGHTS) - 2)
        return INSIGHTS[start:start + 3]


def _seeded(text: str) -> random.Random:
    digest = hashlib.md5(text.encode("utf-8")).hexdigest()
    return random.Random(int(digest[:16], 16))
