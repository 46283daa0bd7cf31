"""O*NET Interest Profiler client.

Serves the interests assessment: the 60-item question set, RIASEC scoring
of an answer string, career matches for a score profile and per-career
details (overview, job outlook salary and top skills). Other assessment
kinds are not offered by O*NET and raise ContentProviderError.
"""

import asyncio
from typing import Any

import httpx
import structlog

from tenure.core.config import get_settings
from tenure.core.exceptions import ContentProviderError
from tenure.domain.assessments import AssessmentKind
from tenure.domain.categories import CATEGORY_ORDER
from tenure.schemas.discover import (
    CareerDetails,
    CareerMatch,
    CareerSalary,
    CareerTags,
    Question,
    ScoreProfile,
)

logger = structlog.get_logger(__name__)

TOP_SKILLS = 5


def _task_list(value: Any) -> list[str]:
    """on_the_job arrives either as a list or as {"task": [...]}."""
    if isinstance(value, dict):
        value = value.get("task")
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


class OnetContentProvider:
    """Content provider backed by the O*NET My Next Move web service."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Service root; defaults to Settings.onet_base_url
            api_key: Sent as X-API-Key; defaults to Settings.onet_api_key
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        settings = get_settings()
        self.base_url = (base_url or settings.onet_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.onet_api_key
        self.timeout = timeout if timeout is not None else settings.onet_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"X-API-Key": self.api_key, "Accept": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _get(
        self, client: httpx.AsyncClient, operation: str, endpoint: str, params: dict | None = None
    ) -> httpx.Response:
        try:
            return await client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            raise ContentProviderError(operation, f"{type(e).__name__}: {e}") from e

    @staticmethod
    def _json(operation: str, response: httpx.Response) -> Any:
        if response.status_code >= 400:
            raise ContentProviderError(
                operation, f"O*NET API error ({response.status_code}): {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise ContentProviderError(operation, f"invalid JSON: {e}") from e

    @staticmethod
    def _optional_json(response: httpx.Response) -> dict | None:
        """Body of a supplementary response, or None when it failed."""
        if response.status_code >= 400:
            return None
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _require_interests(operation: str, kind: AssessmentKind) -> None:
        if kind != AssessmentKind.INTERESTS:
            raise ContentProviderError(operation, f"O*NET does not provide the {kind.value} assessment")

    async def get_questions(self, kind: AssessmentKind, count: int) -> list[Question]:
        self._require_interests("get_questions", kind)
        async with self._client() as client:
            response = await self._get(
                client,
                "get_questions",
                "/mnm/interestprofiler/questions",
                params={"start": 1, "end": count},
            )
            data = self._json("get_questions", response)

        questions = [
            Question(index=int(q["index"]) - 1, area=q.get("area", ""), text=q["text"])
            for q in data.get("question") or []
        ]
        if len(questions) != count:
            raise ContentProviderError(
                "get_questions", f"expected {count} questions, got {len(questions)}"
            )
        logger.debug("onet_questions_loaded", count=len(questions))
        return questions

    async def get_results(self, kind: AssessmentKind, answers: str) -> dict[str, Any] | None:
        self._require_interests("get_results", kind)
        async with self._client() as client:
            response = await self._get(
                client, "get_results", "/mnm/interestprofiler/results", params={"answers": answers}
            )
            data = self._json("get_results", response)

        results = data.get("result") or []
        if not results:
            return None
        return {
            str(r["code"]).lower(): {
                "score": r["score"],
                "title": r.get("title", ""),
                "description": r.get("description", ""),
            }
            for r in results
        }

    async def get_career_matches(self, profile: ScoreProfile) -> list[CareerMatch]:
        params = {c.value: profile.area(c).score for c in CATEGORY_ORDER}
        async with self._client() as client:
            response = await self._get(
                client, "get_career_matches", "/mnm/interestprofiler/careers", params=params
            )
            data = self._json("get_career_matches", response)

        return [
            CareerMatch(
                code=c["code"],
                title=c["title"],
                fit=c.get("fit"),
                tags=CareerTags.model_validate(c.get("tags") or {}),
            )
            for c in data.get("career") or []
        ]

    async def get_career_details(self, code: str) -> CareerDetails | None:
        async with self._client() as client:
            career_res, outlook_res, skills_res = await asyncio.gather(
                self._get(client, "get_career_details", f"/mnm/careers/{code}"),
                self._get(client, "get_career_details", f"/mnm/careers/{code}/job_outlook"),
                self._get(client, "get_career_details", f"/mnm/careers/{code}/skills"),
            )

        if career_res.status_code == 404:
            return None
        career = self._json("get_career_details", career_res)

        salary = None
        outlook = self._optional_json(outlook_res)
        if outlook is None:
            logger.debug("onet_outlook_unavailable", code=code, status=outlook_res.status_code)
        elif isinstance(outlook.get("salary"), dict):
            salary = CareerSalary(
                annual_median=outlook["salary"].get("annual_median"),
                hourly_median=outlook["salary"].get("hourly_median"),
            )

        skills: list[str] = []
        skills_data = self._optional_json(skills_res)
        if skills_data is not None:
            skills = [e["name"] for e in skills_data.get("element") or []][:TOP_SKILLS]
        else:
            logger.debug("onet_skills_unavailable", code=code, status=skills_res.status_code)

        return CareerDetails(
            code=career.get("code", code),
            title=career.get("title", ""),
            tags=CareerTags.model_validate(career.get("tags") or {}),
            what_they_do=career.get("what_they_do", ""),
            on_the_job=_task_list(career.get("on_the_job")),
            salary=salary,
            skills=skills,
        )
