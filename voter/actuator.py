from typing import TYPE_CHECKING

from config import (
    VOTE_FORM_SELECTOR,
    VOTE_RADIO_SELECTOR,
    EXPLANATION_SELECTOR,
    SUBMIT_SELECTOR,
)
from models import DecisionTarget

if TYPE_CHECKING:
    from browser import BrowserController


# Values are passed as the function argument, never interpolated into the script.
FILL_VOTE_FORM_JS = """
(args) => {
    const form = document.querySelector(args.form);
    if (!form) return {ok: false, reason: 'form_missing'};

    if (args.winnerId !== null) {
        const radio = Array.from(form.querySelectorAll(args.radio))
            .find(r => r.value === args.winnerId);
        if (!radio) return {ok: false, reason: 'option_missing'};
        const label = radio.closest('label');
        if (label) {
            label.click();
        } else {
            radio.checked = true;
            radio.dispatchEvent(new Event('change', {bubbles: true}));
        }
    }

    const textarea = form.querySelector(args.textarea);
    if (textarea) {
        textarea.value = args.explanation;
        textarea.dispatchEvent(new Event('input', {bubbles: true}));
    }

    if (args.dryRun) return {ok: true, reason: 'dry_run'};

    const submit = form.querySelector(args.submit);
    if (!submit) return {ok: false, reason: 'submit_missing'};
    submit.click();
    return {ok: true, reason: 'submitted'};
}
"""


class VoteSubmitter:
    def __init__(self, browser: "BrowserController"):
        self.browser = browser

    async def submit(
        self,
        targets: list[DecisionTarget],
        winning_id: str | None,
        rationale: str,
        dry_run: bool = True,
    ) -> bool:
        """Fill the vote form and, unless dry_run, click submit. Returns success."""
        if winning_id is not None and winning_id not in {t.selectable_id for t in targets}:
            print(f"[submit] option {winning_id!r} is not on the form", flush=True)
            return False

        try:
            result = await self.browser.execute_js(FILL_VOTE_FORM_JS, {
                "form": VOTE_FORM_SELECTOR,
                "radio": VOTE_RADIO_SELECTOR,
                "textarea": EXPLANATION_SELECTOR,
                "submit": SUBMIT_SELECTOR,
                "winnerId": winning_id,
                "explanation": rationale or "",
                "dryRun": dry_run,
            })
        except Exception as e:
            print(f"[submit] form script failed: {e}", flush=True)
            return False

        result = result or {}
        print(f"[submit] {result.get('reason', 'no result')}", flush=True)
        return bool(result.get("ok"))
