"""
Reply Parsing

Providers answer in free text. Proposed actions are written one per line
as tags the system prompt asks for:

    [ACTION:<type>:<risk>] <description> {optional JSON payload}

Example:

    Your electricity bill is due Friday.
    [ACTION:transaction:high] Pay City Power $84.20 {"amount": "84.20", "payee": "City Power"}
    [ACTION:reminder:low] Remind me Thursday {"message": "Electricity bill due"}

Tag lines are removed from the text shown to the user. Payload JSON is
optional; when it is missing or unreadable the action keeps an empty
payload and the description carries the whole line.
"""

import json
import re
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from chief_of_staff.models.actions import ActionProposal, RiskLevel

logger = structlog.get_logger(__name__)

ACTION_TAG = re.compile(
    r"^[ \t]*\[ACTION:(?P<type>[A-Za-z_]+):(?P<risk>[A-Za-z_]+)\][ \t]*(?P<body>.*)$",
    re.MULTILINE,
)

_decoder = json.JSONDecoder()


def _split_payload(body: str) -> tuple[str, dict[str, Any]]:
    """
    Separate a trailing JSON object from the description.

    Braces inside the description are allowed: the payload is the first
    `{` from which a JSON object decodes and runs to the end of the line.
    """
    start = body.find("{")
    while start >= 0:
        try:
            payload, end = _decoder.raw_decode(body, start)
        except json.JSONDecodeError:
            payload, end = None, start
        if isinstance(payload, dict) and not body[end:].strip():
            description = body[:start].strip() or body.strip()
            return description, payload
        start = body.find("{", start + 1)
    return body.strip(), {}


def extract_action_tags(text: str) -> tuple[str, list[ActionProposal]]:
    """
    Pull action tags out of a reply.

    Returns:
        (text without tag lines, proposals in order of appearance)
    """
    proposals: list[ActionProposal] = []

    for match in ACTION_TAG.finditer(text):
        description, payload = _split_payload(match.group("body"))
        if not description:
            logger.warning("action_tag_without_description", tag=match.group(0))
            continue
        proposals.append(ActionProposal(
            type=match.group("type").lower(),
            description=description,
            payload=payload,
            risk_level=RiskLevel.normalize(match.group("risk")).value,
        ))

    remaining = ACTION_TAG.sub("", text)
    remaining = re.sub(r"\n{3,}", "\n\n", remaining).strip()
    return remaining, proposals


def parse_structured_actions(raw: Any) -> list[ActionProposal]:
    """
    Validate an `actions` array sent as structured data.

    Entries that are not objects or miss required fields are skipped.
    """
    if not isinstance(raw, list):
        return []
    proposals = []
    for entry in raw:
        try:
            proposals.append(ActionProposal.model_validate(entry))
        except ValidationError as e:
            logger.warning("structured_action_invalid", error=str(e))
    return proposals


def parse_reply(
    text: str,
    structured_actions: Optional[Any] = None,
) -> tuple[str, list[ActionProposal]]:
    """
    Turn raw provider output into display text and proposals.

    Structured actions, when a provider sends them, are used as-is and
    tag lines are still stripped from the text. Returns empty text only
    when the provider sent nothing usable.
    """
    cleaned, tagged = extract_action_tags(text or "")
    actions = parse_structured_actions(structured_actions) if structured_actions else tagged

    if not cleaned and actions:
        noun = "action" if len(actions) == 1 else "actions"
        cleaned = f"I've prepared {len(actions)} {noun} for you to review."

    return cleaned, actions
