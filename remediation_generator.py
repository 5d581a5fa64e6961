# remediation_generator.py - AI remediation advisor (Azure OpenAI) and Word export

import os
import json
import logging
import re
from io import BytesIO
from typing import Any, Dict, List, Optional, Union

from docx import Document
from dotenv import load_dotenv
from openai import AzureOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from prompts import REMEDIATION_PROMPT, REMEDIATION_SYSTEM_PROMPT
from utils import estimate_tokens

load_dotenv()

logger = logging.getLogger(__name__)

API_VERSION = os.getenv("AZURE_OPENAI_API_VERSION", "2024-12-01-preview")
CHAT_DEPLOY = os.getenv("AZURE_OPENAI_DEPLOYMENT")

GENERATION_FAILED_MESSAGE = "Failed to generate remediation steps. Please try again."

_client: Optional[AzureOpenAI] = None


class RemediationError(Exception):
    """The model call failed or its reply could not be turned into both sections."""


# ============================================================
# Request / response models
# ============================================================
class RemediationInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    policy_definition: str = Field(alias="policyDefinition", min_length=10, max_length=5000)
    resource_details: str = Field(alias="resourceDetails", min_length=10, max_length=5000)


class RemediationOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    remediation_steps: str = Field(alias="remediationSteps", min_length=1)
    exception_request: str = Field(alias="exceptionRequest", min_length=1)


INPUT_MESSAGES = {
    "policyDefinition": ("Policy definition is too short.", "Policy definition is too long."),
    "resourceDetails": ("Resource details are too short.", "Resource details are too long."),
}


def input_errors(exc: ValidationError) -> Dict[str, str]:
    """Map a RemediationInput ValidationError to ``{field: message}`` for the form."""
    messages = {}
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else ""
        too_short, too_long = INPUT_MESSAGES.get(name, (error["msg"], error["msg"]))
        if error["type"] in ("string_too_short", "missing"):
            msg = too_short
        elif error["type"] == "string_too_long":
            msg = too_long
        else:
            msg = error["msg"]
        messages.setdefault(name, msg)
    return messages


# ============================================================
# Azure OpenAI Client
# ============================================================
def _get_client() -> AzureOpenAI:
    """Initialize the Azure OpenAI client on first use"""
    global _client
    if _client is None:
        missing = [name for name in ("AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT")
                   if not os.getenv(name)]
        if missing:
            raise RemediationError(f"Azure OpenAI is not configured; missing {', '.join(missing)}")
        _client = AzureOpenAI(
            api_key=os.getenv("AZURE_OPENAI_API_KEY"),
            azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT"),
            api_version=API_VERSION,
        )
    return _client


def _chat(messages: List[Dict[str, str]], temperature: float = 0.2) -> str:
    """Helper function to call Azure OpenAI"""
    resp = _get_client().chat.completions.create(
        model=CHAT_DEPLOY or os.getenv("AZURE_OPENAI_DEPLOYMENT"),
        messages=messages,
        temperature=temperature,
    )
    if not resp.choices:
        raise RemediationError("Model returned no choices")
    return resp.choices[0].message.content or ""


# ============================================================
# Response parsing
# ============================================================
def _extract_json(response: str) -> Optional[Dict[str, Any]]:
    # Try direct parse
    try:
        data = json.loads(response)
    except json.JSONDecodeError:
        # Try extracting JSON from markdown code blocks
        json_match = re.search(r'```(?:json)?\s*(.*?)\s*```', response, re.DOTALL)
        if not json_match:
            # Last resort: extract just the JSON object
            json_match = re.search(r'(\{.*\})', response, re.DOTALL)
        if not json_match:
            return None
        try:
            data = json.loads(json_match.group(1))
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


_SECTION_RE = re.compile(
    r'remediation\s+steps\s*:?\**\s*(?P<steps>.*?)\s*\**exception\s+request\s*:?\**\s*(?P<exception>.*)',
    re.IGNORECASE | re.DOTALL,
)


def parse_remediation_response(response: str) -> RemediationOutput:
    """
    Turn the model reply into both sections.

    JSON is expected; plain "Remediation Steps: ... Exception Request: ..." text
    is accepted as a fallback. Anything else raises RemediationError.
    """
    data = _extract_json(response)
    if data is None:
        match = _SECTION_RE.search(response)
        if match:
            data = {
                "remediationSteps": match.group("steps").strip("#* \n"),
                "exceptionRequest": match.group("exception").strip("#* \n"),
            }
    if data is None:
        raise RemediationError("Could not extract remediation sections from response")
    try:
        return RemediationOutput.model_validate(data)
    except ValidationError as e:
        raise RemediationError(f"Incomplete remediation response: {e}") from e


# ============================================================
# Public API
# ============================================================
def generate_remediation_steps(data: Union[RemediationInput, Dict[str, str]]) -> RemediationOutput:
    """
    Draft remediation steps and an exception request for a non-compliant policy.

    Invalid input raises pydantic's ValidationError; any model or transport
    failure raises RemediationError. There is no retry and no partial result.
    """
    if not isinstance(data, RemediationInput):
        data = RemediationInput.model_validate(data)

    prompt = REMEDIATION_PROMPT.format(
        policy_definition=data.policy_definition,
        resource_details=data.resource_details,
    )
    messages = [
        {"role": "system", "content": REMEDIATION_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]
    logger.info(
        "Requesting remediation: policy=%d chars, resource=%d chars, ~%d prompt tokens",
        len(data.policy_definition), len(data.resource_details), estimate_tokens(REMEDIATION_SYSTEM_PROMPT + prompt),
    )

    try:
        response = _chat(messages)
    except OpenAIError as e:
        logger.error("Remediation generation failed: %s", e)
        raise RemediationError(str(e)) from e
    except RemediationError as e:
        logger.error("Remediation generation failed: %s", e)
        raise

    if not response.strip():
        logger.error("Remediation generation returned an empty response")
        raise RemediationError("Empty response from model")

    try:
        return parse_remediation_response(response)
    except RemediationError:
        logger.exception("Could not parse remediation response")
        raise


def generate_word_report(output: RemediationOutput, name: str = "Remediation Plan") -> BytesIO:
    """
    Generate a Word document holding both sections (Markdown style content)
    """
    doc = Document()
    doc.add_heading(name, 0)

    for heading, content in (
        ("Remediation Steps", output.remediation_steps),
        ("Exception Request", output.exception_request),
    ):
        doc.add_heading(heading, level=1)
        _add_markdown(doc, content)

    # Save to in-memory buffer
    buffer = BytesIO()
    doc.save(buffer)
    buffer.seek(0)
    return buffer


def _add_markdown(doc: Document, content: str) -> None:
    for line in content.split("\n"):
        line = line.strip()
        if not line:
            continue
        if line.startswith("### "):
            doc.add_heading(line[4:], level=3)
        elif line.startswith("## ") or line.startswith("# "):
            doc.add_heading(line.lstrip("# "), level=2)
        elif line.startswith(("- ", "* ")):
            doc.add_paragraph(line[2:], style="List Bullet")
        elif re.match(r'^\d+[.)]\s', line):
            doc.add_paragraph(re.sub(r'^\d+[.)]\s+', '', line), style="List Number")
        else:
            doc.add_paragraph(line)
