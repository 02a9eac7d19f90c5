import asyncio
import pytest
from unittest.mock import AsyncMock, Mock

from judge import (
    DecisionJudge,
    DecisionFormatError,
    DecisionUnavailableError,
    build_prompt,
    parse_decision,
)
from config import MAX_OUTPUT_TOKENS, TEMPERATURE, THINKING_BUDGET
from models import DecisionTarget, Entry, Matchup, Outcome


def make_matchup(with_entries=True):
    first = DecisionTarget(selectable_id="1", title="Rocket")
    second = DecisionTarget(selectable_id="2", title="Garden")
    return Matchup(
        first=first,
        second=second,
        first_entry=Entry(title="Rocket", external_ref="https://github.com/a/rocket") if with_entries else None,
        second_entry=Entry(title="Garden", external_ref="https://github.com/b/garden") if with_entries else None,
    )


def make_judge(reply=None, error=None, readmes=None):
    client = Mock()
    if error:
        client.aio.models.generate_content = AsyncMock(side_effect=error)
    else:
        client.aio.models.generate_content = AsyncMock(return_value=Mock(text=reply))
    fetcher = Mock()
    fetcher.fetch = AsyncMock(side_effect=readmes or (lambda ref: None))
    return DecisionJudge(api_key="test", fetcher=fetcher, client=client), client, fetcher


def test_parse_plain_json():
    decision = parse_decision('{"winner": "project1", "explanation": "Better docs."}')
    assert decision.outcome == Outcome.FIRST
    assert decision.rationale == "Better docs."


def test_parse_json_embedded_in_prose():
    text = 'Sure! Here is my verdict:\n{"winner":"project2","explanation":"Cleaner {code}."}\nHope that helps.'
    decision = parse_decision(text)
    assert decision.outcome == Outcome.SECOND
    assert decision.rationale == "Cleaner {code}."


def test_parse_markdown_fenced_json():
    decision = parse_decision('```json\n{"winner": "tie", "explanation": "Equal."}\n```')
    assert decision.outcome == Outcome.TIE


def test_parse_unknown_winner():
    decision = parse_decision('{"winner": "project3", "explanation": "?"}')
    assert decision.outcome == Outcome.UNKNOWN


def test_parse_garbage_raises():
    with pytest.raises(DecisionFormatError):
        parse_decision("I cannot decide between these projects.")
    with pytest.raises(DecisionFormatError):
        parse_decision("{not json at all}")
    with pytest.raises(DecisionFormatError):
        parse_decision('["project1"]')


def test_prompt_truncates_and_marks_missing_readme():
    prompt = build_prompt("Rocket", "x" * 5000, "Garden", "")
    assert "x" * 1000 in prompt
    assert "x" * 1001 not in prompt
    assert "README 2: No README" in prompt
    assert '"winner"' in prompt


def test_decide_uses_readmes():
    readmes = {"https://github.com/a/rocket": "# Rocket\nFlies.", "https://github.com/b/garden": None}
    judge, client, fetcher = make_judge(
        reply='{"winner": "project2", "explanation": "More creative."}',
        readmes=lambda ref: readmes[ref],
    )
    decision = asyncio.run(judge.decide(make_matchup()))

    assert decision.outcome == Outcome.SECOND
    assert fetcher.fetch.await_count == 2
    prompt = client.aio.models.generate_content.await_args.kwargs["contents"]
    assert "Flies." in prompt
    assert "README 2: No README" in prompt


def test_decide_fetch_failure_degrades_to_empty():
    def boom(ref):
        raise RuntimeError("rate limited")

    judge, client, _ = make_judge(reply='{"winner": "tie", "explanation": "Same."}', readmes=boom)
    decision = asyncio.run(judge.decide(make_matchup()))
    assert decision.outcome == Outcome.TIE


def test_decide_without_entries_skips_fetch():
    judge, _, fetcher = make_judge(reply='{"winner": "project1", "explanation": "ok"}')
    asyncio.run(judge.decide(make_matchup(with_entries=False)))
    fetcher.fetch.assert_not_called()


def test_decide_model_error_is_unavailable():
    judge, _, _ = make_judge(error=RuntimeError("503"))
    with pytest.raises(DecisionUnavailableError):
        asyncio.run(judge.decide(make_matchup()))


def test_decide_empty_reply_is_format_error():
    judge, _, _ = make_judge(reply=None)
    with pytest.raises(DecisionFormatError):
        asyncio.run(judge.decide(make_matchup()))


def test_decide_sends_generation_config():
    judge, client, _ = make_judge(reply='{"winner": "tie", "explanation": "Even."}')
    asyncio.run(judge.decide(make_matchup()))

    config = client.aio.models.generate_content.await_args.kwargs["config"]
    assert config.response_mime_type == "application/json"
    assert config.temperature == TEMPERATURE
    assert config.max_output_tokens == MAX_OUTPUT_TOKENS
    assert config.thinking_config.thinking_budget == THINKING_BUDGET
    assert MAX_OUTPUT_TOKENS > THINKING_BUDGET
