"""Extraction of tool calls embedded in model text output.

Some models ignore the structured function-calling channel and write tool
calls inline, wrapped in marker tags:

    <tool_call>{"name": "add_layer", "arguments": {"layer_id": "carbon"}}</tool_call>
    <tool_call>add_layer({"layer_id": "carbon"})</tool_call>
    <tool_call>get_layer_info</tool_call>

EmbeddedCallParser turns such text into an ordered list of invocation
requests. It never raises: fragments it cannot interpret are dropped.
"""

import json
import logging
import re
from typing import Any, Iterable

from mapchat_server.tools.registry import QUERY_TOOL_NAME
from mapchat_server.tools.types import InvocationRequest

logger = logging.getLogger(__name__)

DEFAULT_START_MARKER = "<tool_call>"
DEFAULT_END_MARKER = "</tool_call>"

_IDENTIFIER = re.compile(r"^\w+$", re.ASCII)
_CALL_EXPRESSION = re.compile(r"^(\w+)\s*\((.+)\)$", re.ASCII | re.DOTALL)


def _load_object(text: str) -> dict[str, Any] | None:
    """Decode text as a JSON object, returning None for anything else."""
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def coerce_arguments(value: Any) -> dict[str, Any]:
    # OpenAI-style payloads carry arguments as a JSON-encoded string
    if isinstance(value, str):
        value = _load_object(value)
    return value if isinstance(value, dict) else {}


class EmbeddedCallParser:
    """Stateless parser for marker-delimited tool calls.

    Attributes:
        start_marker: Tag opening an embedded call
        end_marker: Tag closing an embedded call
        query_tool_name: Tool accepted as a bare identifier even when it is
                         not a registered local tool
    """

    def __init__(
        self,
        start_marker: str = DEFAULT_START_MARKER,
        end_marker: str = DEFAULT_END_MARKER,
        query_tool_name: str = QUERY_TOOL_NAME,
    ) -> None:
        self.start_marker = start_marker
        self.end_marker = end_marker
        self.query_tool_name = query_tool_name
        self._start = re.compile(re.escape(start_marker), re.IGNORECASE)
        self._fragment = re.compile(
            re.escape(start_marker) + r"(.*?)" + re.escape(end_marker),
            re.IGNORECASE | re.DOTALL,
        )

    def fragments(self, text: str) -> list[str]:
        """Return the trimmed inner text of every delimited fragment, in order."""
        if not isinstance(text, str) or not text:
            return []

        found = []
        for match in self._fragment.finditer(text):
            # Text after an unclosed start marker is not part of this fragment
            inner = self._start.split(match.group(1))[-1]
            found.append(inner.strip())
        return found

    def parse(
        self, text: str, local_tool_names: Iterable[str] = ()
    ) -> list[InvocationRequest]:
        """Extract invocation requests from model output.

        Args:
            text: Free text produced by the model
            local_tool_names: Names of currently registered local tools, used
                              to accept bare-identifier calls

        Returns:
            list[InvocationRequest]: Requests in left-to-right order
        """
        known = set(local_tool_names)
        known.add(self.query_tool_name)

        requests: list[InvocationRequest] = []
        for inner in self.fragments(text):
            logger.debug(f"Found embedded tool call fragment: {inner!r}")
            request = self._parse_fragment(inner, known)
            if request is None:
                continue
            requests.append(request)
        return requests

    def _parse_fragment(self, inner: str, known: set[str]) -> InvocationRequest | None:
        parsed = _load_object(inner)
        if parsed is not None:
            name = parsed.get("name")
            if isinstance(name, str) and name:
                return InvocationRequest(
                    name=name, args=coerce_arguments(parsed.get("arguments"))
                )

        call = _CALL_EXPRESSION.match(inner)
        if call:
            args = _load_object(call.group(2))
            if args is not None:
                return InvocationRequest(name=call.group(1), args=args)
            logger.debug(f"Could not parse call arguments as JSON: {call.group(2)!r}")

        if _IDENTIFIER.match(inner):
            if inner in known:
                return InvocationRequest(name=inner, args={})
            # Tool names mentioned in prose are not invocations
            logger.debug(f"Ignoring bare identifier that is not a known tool: {inner}")
            return None

        logger.info(f"Could not parse embedded tool call: {inner!r}")
        return None

    def strip(self, text: str) -> str:
        """Remove every delimited fragment from text, for display."""
        if not isinstance(text, str) or not text:
            return ""
        return self._fragment.sub("", text).strip()
