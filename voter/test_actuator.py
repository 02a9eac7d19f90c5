import asyncio
import pytest
from unittest.mock import AsyncMock, Mock

from actuator import VoteSubmitter, FILL_VOTE_FORM_JS
from models import DecisionTarget

TARGETS = [
    DecisionTarget(selectable_id="1", title="A"),
    DecisionTarget(selectable_id="2", title="B"),
    DecisionTarget(selectable_id="tie", title="Tie"),
]


def make_browser(result):
    browser = Mock()
    browser.execute_js = AsyncMock(return_value=result)
    return browser


def test_submit_passes_rationale_as_argument():
    browser = make_browser({"ok": True, "reason": "submitted"})
    rationale = 'It\'s "clearly" better; </script><script>alert(1)</script>'
    ok = asyncio.run(VoteSubmitter(browser).submit(TARGETS, "2", rationale, dry_run=False))

    assert ok is True
    script, args = browser.execute_js.await_args.args
    assert script == FILL_VOTE_FORM_JS
    assert rationale not in script
    assert args["explanation"] == rationale
    assert args["winnerId"] == "2"
    assert args["dryRun"] is False


def test_missing_form_returns_false():
    browser = make_browser({"ok": False, "reason": "form_missing"})
    assert asyncio.run(VoteSubmitter(browser).submit(TARGETS, "1", "x", dry_run=False)) is False


def test_missing_submit_button_returns_false():
    browser = make_browser({"ok": False, "reason": "submit_missing"})
    assert asyncio.run(VoteSubmitter(browser).submit(TARGETS, "1", "x", dry_run=False)) is False


def test_dry_run():
    browser = make_browser({"ok": True, "reason": "dry_run"})
    assert asyncio.run(VoteSubmitter(browser).submit(TARGETS, "tie", "even", dry_run=True)) is True
    assert browser.execute_js.await_args.args[1]["dryRun"] is True


def test_unknown_winner_never_touches_page():
    browser = make_browser({"ok": True})
    assert asyncio.run(VoteSubmitter(browser).submit(TARGETS, "999", "x", dry_run=False)) is False
    browser.execute_js.assert_not_called()


def test_script_error_returns_false():
    browser = Mock()
    browser.execute_js = AsyncMock(side_effect=RuntimeError("Target closed"))
    assert asyncio.run(VoteSubmitter(browser).submit(TARGETS, "1", "x", dry_run=False)) is False


def test_option_missing_from_form_returns_false():
    assert "reason: 'option_missing'" in FILL_VOTE_FORM_JS
    browser = make_browser({"ok": False, "reason": "option_missing"})
    assert asyncio.run(VoteSubmitter(browser).submit(TARGETS, "2", "x", dry_run=False)) is False
