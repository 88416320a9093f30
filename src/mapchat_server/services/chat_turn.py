"""Chat turn orchestration with tool calling.

This module provides the ChatTurnService which runs one conversational turn:
it sends the session history and tool definitions to Ollama, collects the
tool calls the model made (structured or embedded in text), executes the
ones the session's execution policy allows, and feeds the results back until
the model answers without calling tools.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncIterator

from mapchat_server.ollama import OllamaClient
from mapchat_server.sessions import AgentSession
from mapchat_server.tools import (
    Dispatcher,
    EmbeddedCallParser,
    InvocationRequest,
    ToolResult,
)
from mapchat_server.tools.parser import coerce_arguments

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 5
DECLINED_MESSAGE = "The user declined to run {name}."


@dataclass
class TurnEvent:
    """One step of a chat turn.

    Event types:
        - assistant_message: The model replied (content has markers removed)
        - tool_result: A tool was executed
        - pending_tool_calls: Tool calls are waiting for approval
        - done: The turn is complete
    """

    event: str
    data: dict[str, Any] = field(default_factory=dict)


def tool_message(result: ToolResult) -> dict[str, Any]:
    """Build the Ollama history message that reports a tool result."""
    return {"role": "tool", "content": result.result, "tool_name": result.name}


class ChatTurnService:
    """Runs chat turns for agent sessions.

    Attributes:
        ollama_client: Client used to query the model
        parser: Parser for tool calls embedded in model text
        max_tool_rounds: Maximum model calls per turn
    """

    def __init__(
        self,
        ollama_client: OllamaClient,
        parser: EmbeddedCallParser | None = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        self.ollama_client = ollama_client
        self.parser = parser or EmbeddedCallParser()
        self.max_tool_rounds = max_tool_rounds

    @staticmethod
    def tool_definitions(session: AgentSession) -> list[dict[str, Any]]:
        """Wrap the session's tool descriptions for the Ollama tools parameter."""
        return [
            {"type": "function", "function": description}
            for description in session.registry.describe_all()
        ]

    def extract_requests(
        self, session: AgentSession, message: dict[str, Any]
    ) -> list[InvocationRequest]:
        """Collect tool calls from a model message.

        Structured tool calls take precedence. Embedded calls in the text are
        only used when the model made no structured calls.
        """
        requests = []
        for call in message.get("tool_calls") or []:
            function = call.get("function") or {}
            name = function.get("name")
            if not name:
                logger.warning(f"Ignoring structured tool call without a name: {call}")
                continue
            requests.append(
                InvocationRequest(
                    name=name, args=coerce_arguments(function.get("arguments"))
                )
            )

        if requests:
            return requests

        return self.parser.parse(
            message.get("content") or "",
            local_tool_names=session.registry.local_names(),
        )

    @staticmethod
    def needs_approval(session: AgentSession, request: InvocationRequest) -> bool:
        # Unknown tools are dispatched so the model sees the valid names
        if not session.registry.has(request.name):
            return False
        if session.execution_policy == "never_confirm":
            return False
        if session.execution_policy == "always_confirm":
            return True
        return not session.registry.is_local(request.name)

    def split_by_policy(
        self, session: AgentSession, requests: list[InvocationRequest]
    ) -> tuple[list[InvocationRequest], list[InvocationRequest]]:
        """Split requests into those to run now and those to defer.

        Requests run in order, so once one needs approval it and every
        request after it are deferred.
        """
        for index, request in enumerate(requests):
            if self.needs_approval(session, request):
                return requests[:index], requests[index:]
        return requests, []

    def _decline_pending(self, session: AgentSession) -> None:
        for request in session.pending_calls:
            session.add_message(
                tool_message(
                    ToolResult(
                        success=False,
                        name=request.name,
                        result=DECLINED_MESSAGE.format(name=request.name),
                        source="error",
                    )
                )
            )
        if session.pending_calls:
            logger.info(
                f"Declined {len(session.pending_calls)} pending tool calls "
                f"in session {session.session_id}"
            )
        session.pending_calls = []

    async def run(
        self, session: AgentSession, message: str | None = None
    ) -> AsyncIterator[TurnEvent]:
        """Run one chat turn.

        Pending tool calls that were not approved before the turn starts are
        recorded as declined.

        Args:
            session: The session to run the turn in
            message: New user message, or None to continue from the history

        Yields:
            TurnEvent: Events in the order they occur

        Raises:
            Exception: If the Ollama request fails
        """
        self._decline_pending(session)

        if message is not None:
            session.add_message({"role": "user", "content": message})

        dispatcher = Dispatcher(session.registry)
        rounds = 0

        while rounds < self.max_tool_rounds:
            rounds += 1
            response = await self.ollama_client.chat(
                model=session.model,
                messages=list(session.messages),
                tools=self.tool_definitions(session),
            )
            reply = response.get("message") or {}
            content = reply.get("content") or ""
            requests = self.extract_requests(session, reply)

            history_entry: dict[str, Any] = {"role": "assistant", "content": content}
            if reply.get("tool_calls"):
                history_entry["tool_calls"] = reply["tool_calls"]
            session.add_message(history_entry)

            yield TurnEvent(
                "assistant_message",
                {
                    "content": self.parser.strip(content),
                    "tool_calls": [asdict(request) for request in requests],
                    "eval_count": response.get("eval_count"),
                    "prompt_eval_count": response.get("prompt_eval_count"),
                },
            )

            if not requests:
                break

            run_now, deferred = self.split_by_policy(session, requests)

            for result in await dispatcher.execute_all(run_now):
                session.add_message(tool_message(result))
                yield TurnEvent("tool_result", asdict(result))

            if deferred:
                session.pending_calls = deferred
                logger.info(
                    f"Deferred {len(deferred)} tool calls for approval "
                    f"in session {session.session_id}"
                )
                yield TurnEvent(
                    "pending_tool_calls",
                    {
                        "calls": [
                            {
                                **asdict(request),
                                "is_local": session.registry.is_local(request.name),
                            }
                            for request in deferred
                        ]
                    },
                )
                break
        else:
            logger.warning(
                f"Reached {self.max_tool_rounds} tool rounds in session "
                f"{session.session_id}"
            )

        yield TurnEvent("done", {"session_id": session.session_id, "rounds": rounds})

    async def approve(
        self, session: AgentSession, approved: list[int] | None = None
    ) -> list[ToolResult]:
        """Execute pending tool calls the user approved.

        Calls not listed in `approved` are recorded as declined. Approved calls
        run in their original order.

        Args:
            session: The session with pending calls
            approved: Indices into the pending calls, or None to approve all

        Returns:
            list[ToolResult]: One result per pending call, in order
        """
        pending, session.pending_calls = session.pending_calls, []
        allowed = set(range(len(pending))) if approved is None else set(approved)
        dispatcher = Dispatcher(session.registry)

        results: list[ToolResult] = []
        for index, request in enumerate(pending):
            if index in allowed:
                result = await dispatcher.execute(request.name, request.args)
            else:
                result = ToolResult(
                    success=False,
                    name=request.name,
                    result=DECLINED_MESSAGE.format(name=request.name),
                    source="error",
                )
            session.add_message(tool_message(result))
            results.append(result)

        logger.info(
            f"Resolved {len(pending)} pending tool calls in session {session.session_id}"
        )
        return results
