import asyncio

import pytest

from conftest import ScriptedClient, write_call
from makeable.agent.blocks import GeneratedFile, TextBlock, ToolInvocation, ToolResult
from makeable.agent.llm import AssistantMessage
from makeable.agent.loop import WRITE_FILE_TOOL, clean_path, run_tool_loop
from makeable.errors import GenerationError, UnsafePathError

PROMPT = [TextBlock(text="a countdown timer")]


def done(text: str = "All set.") -> AssistantMessage:
    return AssistantMessage(content=[TextBlock(text=text)], stop_reason="end_turn")


def tools(*calls: ToolInvocation) -> AssistantMessage:
    return AssistantMessage(content=[TextBlock(text="Writing files.")] + list(calls), stop_reason="tool_use")


def run(client, prior_files=None, **kwargs):
    return asyncio.run(run_tool_loop(client, "system", PROMPT, prior_files, **kwargs))


def test_single_write_then_stop():
    client = ScriptedClient([tools(write_call("t1", path="index.html", content="<html>...</html>")), done()])

    result = run(client)

    assert result.to_dict() == {"files": [{"path": "index.html", "content": "<html>...</html>"}]}
    assert len(client.calls) == 2
    assert client.calls[0]["tools"] == [WRITE_FILE_TOOL]


def test_last_write_wins_across_turns():
    client = ScriptedClient(
        [
            tools(write_call("t1", path="a.html", content="X")),
            tools(write_call("t2", path="a.html", content="Y")),
            done(),
        ]
    )

    result = run(client)

    assert result.files == [GeneratedFile("a.html", "Y")]


def test_no_tool_calls_returns_prior_files_after_one_round_trip():
    prior = [GeneratedFile("index.html", "OLD")]
    client = ScriptedClient([done("Nothing to change.")])

    result = run(client, prior)

    assert result.files == prior
    assert len(client.calls) == 1


def test_no_files_at_all_is_a_generation_error():
    client = ScriptedClient([done()])

    with pytest.raises(GenerationError):
        run(client)


def test_untouched_prior_files_survive_updates():
    prior = [GeneratedFile("index.html", "OLD"), GeneratedFile("app.js", "console.log(1)")]
    client = ScriptedClient([tools(write_call("t1", path="app.js", content="console.log(2)")), done()])

    result = run(client, prior)

    assert result.files == [GeneratedFile("index.html", "OLD"), GeneratedFile("app.js", "console.log(2)")]


def test_incomplete_call_reports_error_and_keeps_going():
    client = ScriptedClient(
        [
            tools(write_call("t1", path="index.html")),
            tools(write_call("t2", path="index.html", content="<html>fixed</html>")),
            done(),
        ]
    )

    result = run(client)

    second_call_turns = client.calls[1]["turns"]
    assert [turn.role for turn in second_call_turns] == ["user", "assistant", "user"]
    error = second_call_turns[2].content[0]
    assert isinstance(error, ToolResult)
    assert error.tool_use_id == "t1"
    assert error.is_error
    assert "Incomplete file data" in error.content
    assert result.files == [GeneratedFile("index.html", "<html>fixed</html>")]


def test_incomplete_call_never_commits_partial_entry():
    client = ScriptedClient([tools(write_call("t1", path="index.html", content="")), done()])

    with pytest.raises(GenerationError):
        run(client)


def test_each_invocation_gets_one_result_in_a_combined_turn():
    client = ScriptedClient(
        [
            tools(
                write_call("t1", path="index.html", content="<html></html>"),
                write_call("t2", path="style.css", content="body {}"),
                ToolInvocation(id="t3", name="delete_file", input={"path": "x"}),
            ),
            done(),
        ]
    )

    run(client)

    results = client.calls[1]["turns"][2].content
    assert [result.tool_use_id for result in results] == ["t1", "t2", "t3"]
    assert results[0].content == "File index.html created successfully with 13 characters"
    assert not results[1].is_error
    assert results[2].is_error


def test_turn_budget_bounds_the_loop():
    client = ScriptedClient([tools(write_call("t", path="index.html", content="again"))], repeat_last=True)

    result = run(client, max_turns=3)

    assert len(client.calls) == 3
    assert result.files == [GeneratedFile("index.html", "again")]


def test_escaping_paths_are_rejected():
    client = ScriptedClient(
        [
            tools(
                write_call("t1", path="../outside.html", content="nope"),
                write_call("t2", path="/etc/passwd", content="nope"),
                write_call("t3", path="./pages\\about.html", content="ok"),
            ),
            done(),
        ]
    )

    result = run(client)

    results = client.calls[1]["turns"][2].content
    assert [r.is_error for r in results] == [True, True, False]
    assert result.files == [GeneratedFile("pages/about.html", "ok")]


def test_clean_path():
    assert clean_path("css//main.css") == "css/main.css"
    with pytest.raises(UnsafePathError):
        clean_path("C:/Windows/win.ini")
    with pytest.raises(UnsafePathError):
        clean_path("assets/../../secret")
