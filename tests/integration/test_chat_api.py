"""Integration tests for chat API endpoints.

Tests chat turns with tool calling through the full app: structured and
embedded tool calls, execution policies, approval of deferred calls,
streaming and error cases.
"""

import pytest
from httpx import AsyncClient


def reply(content: str = "", tool_calls: list | None = None) -> dict:
    """Build an Ollama chat response."""
    message = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return {"message": message, "done": True, "eval_count": 7, "prompt_eval_count": 30}


def structured_call(name: str, arguments: dict) -> dict:
    return {"function": {"name": name, "arguments": arguments}}


class TestChatNonStreaming:
    """Tests for POST /api/v1/chat/{session_id} endpoint."""

    @pytest.mark.asyncio
    async def test_chat_without_tools(
        self, async_client: AsyncClient, session_id, mock_ollama_client
    ):
        """Test a turn where the model answers directly."""
        mock_ollama_client.chat.return_value = reply("Hi! Ask me about the map.")

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Hello"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == session_id
        assert data["message"]["content"] == "Hi! Ask me about the map."
        assert data["message"]["model"] == "llama3.2:latest"
        assert data["message"]["eval_count"] == 7
        assert data["tool_results"] == []
        assert data["pending_tool_calls"] == []
        assert data["rounds"] == 1

        tools = mock_ollama_client.chat.call_args.kwargs["tools"]
        assert [t["function"]["name"] for t in tools] == [
            "add_layer",
            "get_layer_info",
            "filter_layer",
            "query",
        ]

    @pytest.mark.asyncio
    async def test_chat_runs_local_tool(
        self, async_client: AsyncClient, session_id, mock_ollama_client
    ):
        """Test that local tools run during the turn under the auto policy."""
        mock_ollama_client.chat.side_effect = [
            reply(tool_calls=[structured_call("add_layer", {"layer_id": "carbon"})]),
            reply("The carbon layer is now on the map."),
        ]

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Show carbon"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"]["content"] == "The carbon layer is now on the map."
        assert data["rounds"] == 2
        assert data["tool_results"] == [
            {
                "success": True,
                "name": "add_layer",
                "result": "Layer carbon is now visible",
                "source": "local",
                "echoed_query": None,
            }
        ]

        second_messages = mock_ollama_client.chat.call_args_list[1].kwargs["messages"]
        assert second_messages[-1] == {
            "role": "tool",
            "content": "Layer carbon is now visible",
            "tool_name": "add_layer",
        }

    @pytest.mark.asyncio
    async def test_chat_runs_embedded_tool_call(
        self, async_client: AsyncClient, session_id, mock_ollama_client
    ):
        """Test that tool calls written in the text are executed."""
        mock_ollama_client.chat.side_effect = [
            reply("Checking. <tool_call>get_layer_info</tool_call>"),
            reply("Carbon and CPAD are available."),
        ]

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Which layers exist?"}
        )

        assert response.status_code == 200
        results = response.json()["tool_results"]
        assert [r["name"] for r in results] == ["get_layer_info"]
        assert results[0]["success"] is True

    @pytest.mark.asyncio
    async def test_chat_reports_unknown_tool(
        self, async_client: AsyncClient, session_id, mock_ollama_client
    ):
        mock_ollama_client.chat.side_effect = [
            reply(tool_calls=[structured_call("zoom_to", {"lat": 37})]),
            reply("I can't zoom."),
        ]

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Zoom in"}
        )

        result = response.json()["tool_results"][0]
        assert result["success"] is False
        assert result["result"].startswith("Unknown tool: zoom_to. Available tools:")

    @pytest.mark.asyncio
    async def test_chat_defers_remote_tool_then_approve(
        self,
        async_client: AsyncClient,
        session_id,
        mock_ollama_client,
        mock_mcp_client,
    ):
        """Test the approval flow for remote tools under the auto policy."""
        mock_ollama_client.chat.return_value = reply(
            tool_calls=[structured_call("query", {"sql_query": "SELECT 42 AS n"})]
        )

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Count rows"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["tool_results"] == []
        assert data["pending_tool_calls"] == [
            {"name": "query", "args": {"sql_query": "SELECT 42 AS n"}, "is_local": False}
        ]
        mock_mcp_client.call_tool.assert_not_awaited()

        session = await async_client.get(f"/api/v1/sessions/{session_id}")
        assert session.json()["pending_tool_calls"] == 1

        response = await async_client.post(
            f"/api/v1/chat/{session_id}/approve", json={}
        )

        assert response.status_code == 200
        results = response.json()["tool_results"]
        assert results[0]["success"] is True
        assert results[0]["result"] == "n\n42"
        assert results[0]["echoed_query"] == "SELECT 42 AS n"
        mock_mcp_client.call_tool.assert_awaited_once()

        mock_ollama_client.chat.return_value = reply("There are 42 rows.")
        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": None}
        )

        assert response.status_code == 200
        assert response.json()["message"]["content"] == "There are 42 rows."

    @pytest.mark.asyncio
    async def test_approve_declines_unlisted_calls(
        self,
        async_client: AsyncClient,
        session_id,
        mock_ollama_client,
        mock_mcp_client,
    ):
        mock_ollama_client.chat.return_value = reply(
            tool_calls=[structured_call("query", {"sql_query": "SELECT 1"})]
        )
        await async_client.post(f"/api/v1/chat/{session_id}", json={"message": "Go"})

        response = await async_client.post(
            f"/api/v1/chat/{session_id}/approve", json={"approved": []}
        )

        result = response.json()["tool_results"][0]
        assert result["success"] is False
        assert result["result"] == "The user declined to run query."
        mock_mcp_client.call_tool.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chat_never_confirm_runs_remote_tool(
        self, async_client: AsyncClient, mock_ollama_client, mock_mcp_client
    ):
        create = await async_client.post(
            "/api/v1/sessions",
            json={"model": "llama3.2:latest", "execution_policy": "never_confirm"},
        )
        session_id = create.json()["session_id"]
        mock_ollama_client.chat.side_effect = [
            reply(tool_calls=[structured_call("query", {"sql_query": "SELECT 42 AS n"})]),
            reply("The answer is 42."),
        ]

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Query"}
        )

        data = response.json()
        assert data["pending_tool_calls"] == []
        assert data["tool_results"][0]["source"] == "remote"
        mock_mcp_client.call_tool.assert_awaited_once_with(
            "query", {"sql_query": "SELECT 42 AS n"}
        )

    @pytest.mark.asyncio
    async def test_chat_session_not_found(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/chat/nonexistent", json={"message": "Hello"}
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "session_not_found"

    @pytest.mark.asyncio
    async def test_chat_empty_history(self, async_client: AsyncClient, session_id):
        """Test that a null message on an empty session is rejected."""
        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": None}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "empty_history"

    @pytest.mark.asyncio
    async def test_chat_ollama_error(
        self, async_client: AsyncClient, session_id, mock_ollama_client
    ):
        mock_ollama_client.chat.side_effect = Exception("model not found")

        response = await async_client.post(
            f"/api/v1/chat/{session_id}", json={"message": "Hello"}
        )

        assert response.status_code == 502
        error = response.json()["detail"]["error"]
        assert error["code"] == "ollama_error"
        assert "model not found" in error["message"]


class TestChatStreaming:
    """Tests for POST /api/v1/chat/{session_id}/stream endpoint."""

    @pytest.mark.asyncio
    async def test_stream_events(
        self, async_client: AsyncClient, session_id, mock_ollama_client, parse_sse
    ):
        """Test the event sequence of a turn with a local tool call."""
        mock_ollama_client.chat.side_effect = [
            reply('On it. <tool_call>add_layer({"layer_id": "carbon"})</tool_call>'),
            reply("Done."),
        ]

        response = await async_client.post(
            f"/api/v1/chat/{session_id}/stream", json={"message": "Show carbon"}
        )

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert [e["event"] for e in events] == [
            "assistant_message",
            "tool_result",
            "assistant_message",
            "done",
        ]
        assert events[0]["data"]["content"] == "On it."
        assert events[0]["data"]["tool_calls"] == [
            {"name": "add_layer", "args": {"layer_id": "carbon"}}
        ]
        assert events[1]["data"]["result"] == "Layer carbon is now visible"
        assert events[2]["data"]["content"] == "Done."
        assert events[3]["data"] == {"session_id": session_id, "rounds": 2}

    @pytest.mark.asyncio
    async def test_stream_pending_tool_calls(
        self, async_client: AsyncClient, session_id, mock_ollama_client, parse_sse
    ):
        mock_ollama_client.chat.return_value = reply(
            tool_calls=[structured_call("query", {"sql_query": "SELECT 1"})]
        )

        response = await async_client.post(
            f"/api/v1/chat/{session_id}/stream", json={"message": "Query"}
        )

        events = parse_sse(response.text)
        pending = [e for e in events if e["event"] == "pending_tool_calls"]
        assert pending[0]["data"]["calls"] == [
            {"name": "query", "args": {"sql_query": "SELECT 1"}, "is_local": False}
        ]
        assert events[-1]["event"] == "done"

    @pytest.mark.asyncio
    async def test_stream_error_event(
        self, async_client: AsyncClient, session_id, mock_ollama_client, parse_sse
    ):
        """Test that Ollama failures are reported as an error event."""
        mock_ollama_client.chat.side_effect = Exception("Connection refused")

        response = await async_client.post(
            f"/api/v1/chat/{session_id}/stream", json={"message": "Hello"}
        )

        assert response.status_code == 200
        events = parse_sse(response.text)
        assert events[-1]["event"] == "error"
        assert events[-1]["data"]["code"] == "ollama_error"
        assert "Connection refused" in events[-1]["data"]["message"]

    @pytest.mark.asyncio
    async def test_stream_session_not_found(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/chat/nonexistent/stream", json={"message": "Hello"}
        )

        assert response.status_code == 404
