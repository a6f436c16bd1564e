"""
Clinical summary generation for intake records.

A Summarizer turns an intake record into a short clinician-facing summary, a
severity classification and a department recommendation. Every field of the
result may be None when the model cannot make a judgment.
"""
from abc import ABC, abstractmethod
from typing import Optional
import json
import logging
import re

from openai import AsyncOpenAI

from ..intake.schemas import EnrichmentFields, PatientIntakeRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_SUMMARY = "PLACEHOLDER: AI summary pending model integration"

SEVERITY_LEVELS = ("low", "moderate", "high", "critical")

SYSTEM_PROMPT = (
    "You are a concise medical assistant. You write brief professional patient "
    "summaries for clinicians and answer only with the requested JSON object."
)


class EnrichmentResult(EnrichmentFields):
    """Summary, severity and department produced by a Summarizer."""

    @property
    def summary_text(self) -> Optional[str]:
        return self.ai_summary

    @property
    def severity(self) -> Optional[str]:
        return self.ai_severity

    @property
    def recommended_department(self) -> Optional[str]:
        return self.ai_department


class Summarizer(ABC):
    """Capability interface for AI enrichment."""

    @abstractmethod
    async def summarize(self, record: PatientIntakeRecord) -> EnrichmentResult:
        """Produce enrichment for a freshly built intake record."""


class PlaceholderSummarizer(Summarizer):
    """Deterministic summarizer that never calls a model."""

    async def summarize(self, record: PatientIntakeRecord) -> EnrichmentResult:
        logger.info(f"Placeholder summary for patient {record.patient_id}")
        return EnrichmentResult(ai_summary=PLACEHOLDER_SUMMARY)


def build_summary_prompt(record: PatientIntakeRecord) -> str:
    """
    Build the user prompt sent to the model.

    Args:
        record: Intake record to summarise

    Returns:
        str: Prompt text
    """
    return f"""Create a brief professional patient summary (3-6 sentences) suitable for a clinician, along with severity assessment and department recommendation.

Patient Information:
- Full Name: {record.full_name}
- Age: {record.age}
- Gender: {record.gender or 'N/A'}
- Main Symptoms: {record.main_symptoms}
- Symptom Duration: {record.symptom_duration or 'N/A'}
- Pain Severity (1-10): {record.pain_severity or 'N/A'}
- Medical History: {record.medical_history or 'None reported'}
- Current Medications: {record.current_medications or 'None reported'}
- Allergies: {record.allergies or 'None reported'}
- Preferred Department: {record.preferred_department or 'Any'}

Return your response as JSON:
{{
  "summary": "Clinical summary text here",
  "severity": "low|moderate|high|critical",
  "recommendedDepartment": "General Medicine|Cardiology|Pediatrics|Dermatology|Other"
}}"""


def parse_summary_reply(reply: Optional[str]) -> EnrichmentResult:
    """
    Parse the model's JSON answer.

    Code fences around the JSON are tolerated. A reply that is not JSON is
    kept as the summary text. Severities outside the known levels become None.

    Args:
        reply: Raw completion text

    Returns:
        EnrichmentResult: Parsed enrichment
    """
    if not reply or not reply.strip():
        return EnrichmentResult()

    text = reply.strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Model reply was not JSON; keeping it as summary text")
        return EnrichmentResult(ai_summary=reply.strip())

    if not isinstance(payload, dict):
        return EnrichmentResult(ai_summary=str(payload))

    severity = payload.get("severity")
    if isinstance(severity, str) and severity.strip().lower() in SEVERITY_LEVELS:
        severity = severity.strip().lower()
    else:
        severity = None

    summary = payload.get("summary")
    department = payload.get("recommendedDepartment")
    return EnrichmentResult(
        ai_summary=summary if isinstance(summary, str) and summary.strip() else None,
        ai_severity=severity,
        ai_department=department if isinstance(department, str) and department.strip() else None,
    )


class OpenAISummarizer(Summarizer):
    """
    Summarizer backed by an OpenAI-compatible chat completions endpoint.

    Args:
        model: Model identifier
        api_key: API key (falls back to OPENAI_API_KEY in the environment)
        base_url: Alternative endpoint
        max_tokens: Completion budget
        client: Pre-built AsyncOpenAI client
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: int = 600,
        client: Optional[AsyncOpenAI] = None
    ):
        self.model = model
        self.max_tokens = max_tokens
        self._client = client
        self._api_key = api_key
        self._base_url = base_url

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            logger.debug("Initializing OpenAI client")
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def summarize(self, record: PatientIntakeRecord) -> EnrichmentResult:
        prompt = build_summary_prompt(record)
        logger.info(f"Calling model {self.model} for patient {record.patient_id}")
        logger.debug(f"Prompt length: {len(prompt)} characters")

        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ]
        )
        reply = response.choices[0].message.content
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(f"Tokens used - Prompt: {usage.prompt_tokens}, Completion: {usage.completion_tokens}")
        return parse_summary_reply(reply)
