"""Tests for remediation_generator: AI remediation advisor."""

import json
from types import SimpleNamespace

import pytest
from docx import Document
from openai import APIConnectionError
from pydantic import ValidationError

import remediation_generator
from remediation_generator import (
    RemediationError,
    RemediationInput,
    RemediationOutput,
    generate_remediation_steps,
    generate_word_report,
    input_errors,
    parse_remediation_response,
)

POLICY = '{"if": {"field": "type", "equals": "Microsoft.Storage/storageAccounts"}, "then": {"effect": "audit"}}'
RESOURCE = "Storage account stagestorage001 in rg-staging allows public network access."


@pytest.fixture
def fake_chat(monkeypatch):
    """Replace the Azure OpenAI call; records the messages it was given."""
    calls = []

    def install(reply):
        def _chat(messages, temperature=0.2):
            calls.append(messages)
            if isinstance(reply, Exception):
                raise reply
            return reply

        monkeypatch.setattr(remediation_generator, "_chat", _chat)
        return calls

    return install


class TestInput:
    def test_valid(self):
        data = RemediationInput(policyDefinition=POLICY, resourceDetails=RESOURCE)
        assert data.policy_definition == POLICY

    def test_too_short(self):
        with pytest.raises(ValidationError) as exc:
            RemediationInput(policyDefinition="short", resourceDetails=RESOURCE)
        assert input_errors(exc.value) == {"policyDefinition": "Policy definition is too short."}

    def test_too_long(self):
        with pytest.raises(ValidationError) as exc:
            RemediationInput(policyDefinition=POLICY, resourceDetails="x" * 5001)
        assert input_errors(exc.value) == {"resourceDetails": "Resource details are too long."}

    def test_whitespace_does_not_count(self):
        with pytest.raises(ValidationError):
            RemediationInput(policyDefinition="   abc    ", resourceDetails=RESOURCE)


class TestParse:
    def test_json(self):
        out = parse_remediation_response(json.dumps({"remediationSteps": "1. Fix", "exceptionRequest": "Please"}))
        assert out.remediation_steps == "1. Fix"
        assert out.exception_request == "Please"

    def test_fenced_json(self):
        reply = 'Here you go:\n```json\n{"remediationSteps": "a", "exceptionRequest": "b"}\n```'
        assert parse_remediation_response(reply).exception_request == "b"

    def test_embedded_object(self):
        reply = 'Sure! {"remediationSteps": "a", "exceptionRequest": "b"} Hope this helps.'
        assert parse_remediation_response(reply).remediation_steps == "a"

    def test_plain_sections(self):
        reply = "Remediation Steps:\n1. Disable public access\n\nException Request:\nTemporary exemption for 30 days."
        out = parse_remediation_response(reply)
        assert out.remediation_steps == "1. Disable public access"
        assert out.exception_request == "Temporary exemption for 30 days."

    def test_markdown_sections(self):
        reply = "## Remediation Steps\n- Step one\n## Exception Request\nNot needed."
        out = parse_remediation_response(reply)
        assert out.remediation_steps == "- Step one"
        assert out.exception_request == "Not needed."

    def test_missing_section(self):
        with pytest.raises(RemediationError):
            parse_remediation_response(json.dumps({"remediationSteps": "only this"}))

    def test_unparseable(self):
        with pytest.raises(RemediationError):
            parse_remediation_response("I cannot help with that.")


class TestGenerate:
    def test_success(self, fake_chat):
        calls = fake_chat(json.dumps({"remediationSteps": "1. Restrict network", "exceptionRequest": "N/A"}))
        out = generate_remediation_steps({"policyDefinition": POLICY, "resourceDetails": RESOURCE})
        assert out.remediation_steps == "1. Restrict network"
        messages = calls[0]
        assert messages[0]["role"] == "system"
        assert POLICY in messages[1]["content"]
        assert RESOURCE in messages[1]["content"]

    def test_invalid_input_not_sent(self, fake_chat):
        calls = fake_chat("unused")
        with pytest.raises(ValidationError):
            generate_remediation_steps({"policyDefinition": "x", "resourceDetails": RESOURCE})
        assert calls == []

    def test_transport_error(self, fake_chat):
        fake_chat(APIConnectionError(request=None))
        with pytest.raises(RemediationError):
            generate_remediation_steps(RemediationInput(policyDefinition=POLICY, resourceDetails=RESOURCE))

    def test_empty_reply(self, fake_chat):
        fake_chat("   ")
        with pytest.raises(RemediationError):
            generate_remediation_steps(RemediationInput(policyDefinition=POLICY, resourceDetails=RESOURCE))

    def test_bad_reply(self, fake_chat):
        fake_chat("no idea")
        with pytest.raises(RemediationError):
            generate_remediation_steps(RemediationInput(policyDefinition=POLICY, resourceDetails=RESOURCE))

    def test_reply_without_choices(self, monkeypatch):
        client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(
            create=lambda **kwargs: SimpleNamespace(choices=[]),
        )))
        monkeypatch.setattr(remediation_generator, "_get_client", lambda: client)
        with pytest.raises(RemediationError, match="no choices"):
            generate_remediation_steps(RemediationInput(policyDefinition=POLICY, resourceDetails=RESOURCE))

    def test_not_configured(self, clean_openai_env, monkeypatch):
        monkeypatch.setattr(remediation_generator, "_client", None)
        with pytest.raises(RemediationError, match="not configured"):
            generate_remediation_steps(RemediationInput(policyDefinition=POLICY, resourceDetails=RESOURCE))


class TestWordReport:
    def test_contains_both_sections(self):
        output = RemediationOutput(
            remediationSteps="1. Open the storage account\n2. Disable public access",
            exceptionRequest="**Justification:** legacy client\n- Owner: <team>",
        )
        doc = Document(generate_word_report(output))
        text = [p.text for p in doc.paragraphs]
        assert "Remediation Plan" in text
        assert "Remediation Steps" in text
        assert "Exception Request" in text
        assert "Disable public access" in text
        assert "Owner: <team>" in text
