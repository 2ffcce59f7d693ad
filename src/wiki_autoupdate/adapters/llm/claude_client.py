"""Claude API client for relevance scoring and page routing."""

import asyncio
import json
import re
from typing import Any

import httpx

from wiki_autoupdate.config import Settings
from wiki_autoupdate.core import (
    CollaboratorUnavailableError,
    DigestItem,
    FeedItem,
    ItemClassification,
    MalformedResponseError,
    NewPageTier,
    PageIndexEntry,
    PageTier,
    RelevanceScorer,
    RoutedNewPage,
    RoutedPageUpdate,
    RoutedSkip,
    RoutingOracle,
    RoutingResult,
)


class ClaudeClient(RelevanceScorer, RoutingOracle):
    """Claude API client implementation of both decision oracles."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.api_key = settings.anthropic_api_key
        self.model = settings.claude_model
        self.max_tokens = settings.claude_max_tokens
        self.routing_max_tokens = settings.claude.routing_max_tokens
        self.temperature = settings.claude_temperature
        self.base_url = "https://api.anthropic.com/v1"
        self.max_retries = settings.claude_max_retries
        self.initial_retry_delay = settings.claude_initial_retry_delay
        self.request_delay = settings.claude_request_delay
        self._last_request_time = 0.0

    async def classify_batch(
        self, batch: list[FeedItem], entity_sample: list[str]
    ) -> list[ItemClassification]:
        """Score a batch of feed items (indices in the answer are 1-based)."""
        system_prompt = self.settings.prompts.classify.get("system", "").format(
            entity_sample=", ".join(entity_sample),
        )
        item_lines = "\n".join(
            f'{i}. [{item.source_id}] "{item.title}" ({item.published_at})\n   {item.summary[:200]}'
            for i, item in enumerate(batch, 1)
        )
        prompt = self.settings.prompts.classify.get("user", "").format(count=len(batch), items=item_lines)

        response = await self._call_api(prompt=prompt, system=system_prompt, max_tokens=self.max_tokens)
        data = self._parse_json(response)

        if not isinstance(data, list):
            raise MalformedResponseError(f"Expected a JSON array, got {type(data).__name__}")
        return [self._parse_classification(entry) for entry in data]

    async def route_items(
        self, candidates: list[DigestItem], pages: list[PageIndexEntry]
    ) -> RoutingResult:
        """Route candidate items onto existing pages or new page suggestions."""
        page_lines = "\n".join(
            f'{page.id}: "{page.title}" ({page.entity_type}, importance={page.reader_importance:g})'
            for page in pages
        )
        item_lines = "\n".join(
            f'{i}. [score={item.relevance_score}] "{item.title}" — {item.summary[:150]}'
            for i, item in enumerate(candidates, 1)
        )
        prompt = self.settings.prompts.route.get("user", "").format(
            page_count=len(pages),
            pages=page_lines,
            items=item_lines,
        )
        system_prompt = self.settings.prompts.route.get("system", "")

        response = await self._call_api(prompt=prompt, system=system_prompt, max_tokens=self.routing_max_tokens)
        data = self._parse_json(response)

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")

        try:
            return RoutingResult(
                page_updates=[
                    RoutedPageUpdate(
                        page_id=str(entry["pageId"]),
                        relevant_items=self._indices(entry.get("relevantItems")),
                        reason=str(entry.get("reason", "")),
                        suggested_tier=PageTier.coerce(entry.get("suggestedTier")),
                        directions=str(entry.get("directions", "")),
                    )
                    for entry in data.get("pageUpdates") or []
                ],
                new_pages=[
                    RoutedNewPage(
                        suggested_title=str(entry["suggestedTitle"]),
                        suggested_id=str(entry.get("suggestedId", "")),
                        reason=str(entry.get("reason", "")),
                        relevant_items=self._indices(entry.get("relevantItems")),
                        suggested_tier=NewPageTier.coerce(entry.get("suggestedTier")),
                    )
                    for entry in data.get("newPages") or []
                ],
                skipped=[
                    RoutedSkip(index=int(entry["index"]), reason=str(entry.get("reason", "")))
                    for entry in data.get("skipped") or []
                ],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedResponseError(f"Invalid routing response: {type(e).__name__}: {e}") from e

    def _parse_classification(self, entry: Any) -> ItemClassification:
        """Validate one element of the scorer's array."""
        try:
            score = int(round(float(entry["relevanceScore"])))
            return ItemClassification(
                index=int(entry["index"]),
                relevance_score=min(100, max(0, score)),
                topics=tuple(str(t) for t in entry.get("topics") or []),
                entities=tuple(str(e) for e in entry.get("entities") or []),
                skip=bool(entry.get("skip", False)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedResponseError(f"Invalid classification entry: {type(e).__name__}: {e}") from e

    @staticmethod
    def _indices(value: Any) -> tuple[int, ...]:
        if value is None:
            return ()
        return tuple(int(v) for v in value)

    def _parse_json(self, response: str) -> Any:
        json_text = self._extract_json(response)
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            preview = response[:200] + "..." if len(response) > 200 else response
            print(f"  ⚠️  Claude returned invalid JSON: {preview}")
            raise MalformedResponseError(f"Failed to parse response: {e}") from e

    async def _call_api(self, prompt: str, system: str, max_tokens: int) -> str:
        """Call Claude API with retry logic and rate limiting."""
        if not self.api_key:
            raise CollaboratorUnavailableError("ANTHROPIC_API_KEY is required for classification and routing")

        # Rate limiting: ensure minimum delay between requests
        current_time = asyncio.get_running_loop().time()
        time_since_last_request = current_time - self._last_request_time
        if time_since_last_request < self.request_delay:
            await asyncio.sleep(self.request_delay - time_since_last_request)

        last_exception = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=120.0) as client:
                    response = await client.post(
                        f"{self.base_url}/messages",
                        headers={
                            "x-api-key": self.api_key,
                            "anthropic-version": "2023-06-01",
                            "content-type": "application/json",
                        },
                        json={
                            "model": self.model,
                            "max_tokens": max_tokens,
                            "temperature": self.temperature,
                            "system": system,
                            "messages": [
                                {"role": "user", "content": prompt}
                            ],
                        },
                    )

                    self._last_request_time = asyncio.get_running_loop().time()

                    if response.status_code == 200:
                        try:
                            return response.json()["content"][0]["text"]
                        except (KeyError, IndexError, TypeError, ValueError) as e:
                            raise MalformedResponseError(f"Unexpected API response body: {e!r}") from e

                    # Rate limit - retry with backoff
                    if response.status_code == 429:
                        retry_after = self._get_retry_delay(response, attempt)
                        print(f"⏳ Rate limit hit, retrying after {retry_after:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                        await asyncio.sleep(retry_after)
                        continue

                    # Server errors - retry with backoff
                    if response.status_code >= 500:
                        retry_delay = self.initial_retry_delay * (2 ** attempt)
                        print(f"⚠️  Server error {response.status_code}, retrying after {retry_delay:.1f}s")
                        await asyncio.sleep(retry_delay)
                        continue

                    # Other errors - raise immediately
                    response.raise_for_status()

            except httpx.HTTPStatusError as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    retry_delay = self.initial_retry_delay * (2 ** attempt)
                    print(f"⚠️  HTTP error, retrying after {retry_delay:.1f}s")
                    await asyncio.sleep(retry_delay)
                    continue
                raise
            except httpx.RequestError as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    retry_delay = self.initial_retry_delay * (2 ** attempt)
                    print(f"⚠️  Network error, retrying after {retry_delay:.1f}s")
                    await asyncio.sleep(retry_delay)
                    continue
                raise

        if last_exception:
            raise last_exception
        raise CollaboratorUnavailableError("Failed to call API after all retries")

    def _get_retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Calculate retry delay from response headers or use exponential backoff."""
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass

        return self.initial_retry_delay * (2 ** attempt)

    def _fix_json(self, text: str) -> str:
        """Try to fix common JSON issues."""
        # Remove trailing commas before } or ]
        text = re.sub(r',(\s*[}\]])', r'\1', text)
        return text

    def _try_candidate(self, candidate: str) -> bool:
        try:
            json.loads(candidate)
            return True
        except json.JSONDecodeError:
            return False

    def _extract_json(self, text: str) -> str:
        """Extract JSON from markdown code block or raw text."""
        # Strategy 1: JSON in a markdown code block
        code_block_match = re.search(r'```(?:json)?\s*\n(.*?)\n```', text, re.DOTALL)
        if code_block_match:
            return self._fix_json(code_block_match.group(1).strip())

        # Strategy 2: the whole response is JSON
        candidate = self._fix_json(text.strip())
        if self._try_candidate(candidate):
            return candidate

        # Strategy 3: widest bracketed span, outermost bracket first
        spans = sorted(
            (text.find(opener), closer)
            for opener, closer in (("[", "]"), ("{", "}"))
            if opener in text
        )
        for start, closer in spans:
            end = text.rfind(closer)
            if end > start:
                candidate = self._fix_json(text[start : end + 1])
                if self._try_candidate(candidate):
                    return candidate

        # Strategy 4: any JSON object or array nested at most one level
        json_object_match = re.search(r'\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}', text, re.DOTALL)
        if json_object_match:
            candidate = self._fix_json(json_object_match.group(0))
            if self._try_candidate(candidate):
                return candidate

        json_array_match = re.search(r'\[[^\[\]]*(?:\[[^\[\]]*\][^\[\]]*)*\]', text, re.DOTALL)
        if json_array_match:
            candidate = self._fix_json(json_array_match.group(0))
            if self._try_candidate(candidate):
                return candidate

        # Strategy 5: return as is (last resort)
        return self._fix_json(text.strip())
