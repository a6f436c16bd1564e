"""
Tests for the summarizers, prompt building and reply parsing.
"""
import asyncio
from types import SimpleNamespace

from clinic_intake.enrichment.service import (
    PLACEHOLDER_SUMMARY,
    OpenAISummarizer,
    PlaceholderSummarizer,
    build_summary_prompt,
    parse_summary_reply,
)
from clinic_intake.intake.records import build_intake_record

from conftest import VALID_INTAKE


class FakeCompletions:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(prompt_tokens=10, completion_tokens=20)
        )


def fake_openai_client(reply):
    completions = FakeCompletions(reply)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_placeholder_summarizer():
    record = build_intake_record(VALID_INTAKE)
    result = asyncio.run(PlaceholderSummarizer().summarize(record))
    assert result.summary_text == PLACEHOLDER_SUMMARY
    assert result.severity is None
    assert result.recommended_department is None


def test_prompt_includes_fields_and_fallbacks():
    record = build_intake_record(VALID_INTAKE)
    prompt = build_summary_prompt(record)

    assert "- Full Name: Jane Doe" in prompt
    assert "- Age: 34" in prompt
    assert "- Pain Severity (1-10): 6" in prompt
    assert "- Medical History: None reported" in prompt
    assert "- Allergies: None reported" in prompt
    assert '"severity": "low|moderate|high|critical"' in prompt


def test_prompt_department_fallback():
    record = build_intake_record(dict(VALID_INTAKE, preferredDepartment=""))
    assert "- Preferred Department: Any" in build_summary_prompt(record)


def test_parse_plain_json():
    result = parse_summary_reply(
        '{"summary": "Likely migraine.", "severity": "Moderate", "recommendedDepartment": "General Medicine"}'
    )
    assert result.ai_summary == "Likely migraine."
    assert result.ai_severity == "moderate"
    assert result.ai_department == "General Medicine"


def test_parse_fenced_json():
    reply = '```json\n{"summary": "Chest pain on exertion.", "severity": "high", "recommendedDepartment": "Cardiology"}\n```'
    result = parse_summary_reply(reply)
    assert result.ai_severity == "high"
    assert result.ai_department == "Cardiology"


def test_parse_unknown_severity():
    result = parse_summary_reply('{"summary": "ok", "severity": "extreme"}')
    assert result.ai_summary == "ok"
    assert result.ai_severity is None


def test_parse_non_json_reply_kept_as_summary():
    result = parse_summary_reply("The patient reports a mild headache.")
    assert result.ai_summary == "The patient reports a mild headache."
    assert result.ai_severity is None


def test_parse_empty_reply():
    result = parse_summary_reply("")
    assert result.ai_summary is None
    assert result.ai_severity is None
    assert result.ai_department is None


def test_openai_summarizer_calls_chat_completions():
    client, completions = fake_openai_client(
        '{"summary": "Viral illness.", "severity": "low", "recommendedDepartment": "General Medicine"}'
    )
    summarizer = OpenAISummarizer(model="gpt-4o-mini", max_tokens=300, client=client)
    record = build_intake_record(VALID_INTAKE)

    result = asyncio.run(summarizer.summarize(record))

    assert result.ai_summary == "Viral illness."
    assert result.ai_severity == "low"
    call = completions.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 300
    assert call["messages"][0]["role"] == "system"
    assert "Jane Doe" in call["messages"][1]["content"]
