"""
Split an LLM reply into display prose and an optional chart directive.

Decoding happens in two independent stages:

1. ``find_chart_block`` scans for the first fenced block tagged ``chart``.
2. ``parse_chart_spec`` parses the block body as JSON and validates it as a
   ChartSpec, returning None on any failure.

The fenced block is removed from the prose whenever stage 1 matches, even if
stage 2 fails: a malformed chart is dropped silently (logged, no chart, no
error shown). Only the first block is honoured; any later block stays in the
prose as-is.
"""
import json
import logging
import re
from typing import NamedTuple, Optional

from pydantic import ValidationError

from models.chat_models import ChartSpec, DecodedReply

logger = logging.getLogger(__name__)

CHART_BLOCK_RE = re.compile(r"```chart[ \t]*\r?\n(.*?)```", re.DOTALL)


class ChartBlock(NamedTuple):
    start: int
    end: int
    body: str


def find_chart_block(reply: str) -> Optional[ChartBlock]:
    match = CHART_BLOCK_RE.search(reply or "")
    if not match:
        return None
    return ChartBlock(start=match.start(), end=match.end(), body=match.group(1))


def parse_chart_spec(body: str) -> Optional[ChartSpec]:
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        logger.warning("Chart block is not valid JSON: %s", e)
        return None

    try:
        return ChartSpec.model_validate(payload)
    except ValidationError as e:
        logger.warning("Chart block does not match the chart schema: %s", e)
        return None


def strip_block(reply: str, block: ChartBlock) -> str:
    before = reply[:block.start].rstrip()
    after = reply[block.end:].lstrip()
    return "\n\n".join(part for part in (before, after) if part)


def decode_reply(reply: str) -> DecodedReply:
    block = find_chart_block(reply)
    if block is None:
        return DecodedReply(prose=reply, chart=None)

    return DecodedReply(prose=strip_block(reply, block), chart=parse_chart_spec(block.body))
