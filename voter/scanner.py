"""Read-only queries against the voting page.

Two independent views are taken of the same matchup: the project cards (which
carry the repository links) and the vote form's radio buttons (which carry the
ids the form accepts). They live in different parts of the DOM, so they are
joined by title afterwards.
"""
from typing import TYPE_CHECKING, Optional

from config import (
    ENTRY_SELECTOR,
    REPO_LINK_SELECTOR,
    TITLE_SELECTOR,
    VOTE_RADIO_SELECTOR,
    VOTE_LABEL_SELECTOR,
    TIE_SENTINEL,
)
from models import Entry, DecisionTarget, Matchup

if TYPE_CHECKING:
    from browser import BrowserController


EXTRACT_ENTRIES_JS = """
(args) => {
    const rows = [];
    document.querySelectorAll(args.container).forEach((div, idx) => {
        const link = div.querySelector(args.link);
        if (!link) return;
        const heading = div.querySelector(args.title);
        rows.push({
            index: idx,
            href: link.href,
            heading: heading ? heading.textContent.trim() : null,
        });
    });
    return rows;
}
"""

VOTE_TARGETS_JS = """
(args) => {
    return Array.from(document.querySelectorAll(args.radio)).map(radio => {
        const label = radio.closest('label');
        const span = label ? label.querySelector(args.label) : null;
        return {value: radio.value, label: span ? span.textContent.trim() : null};
    });
}
"""


def build_entries(rows: list[dict]) -> list[Entry]:
    """Turn raw card rows into entries, keeping document order."""
    entries = []
    for row in rows or []:
        href = row.get("href")
        if not href:
            continue
        title = (row.get("heading") or "").strip() or f"Entry {row.get('index', len(entries))}"
        entries.append(Entry(title=title, external_ref=href))
    return entries


def build_targets(rows: list[dict]) -> list[DecisionTarget]:
    targets = []
    for row in rows or []:
        value = str(row.get("value") or "")
        if not value:
            continue
        if value == TIE_SENTINEL:
            title = "Tie"
        else:
            title = (row.get("label") or "").strip() or "Unknown"
        targets.append(DecisionTarget(selectable_id=value, title=title))
    return targets


class EntryExtractor:
    def __init__(self, browser: "BrowserController"):
        self.browser = browser

    async def extract(self) -> list[Entry]:
        try:
            rows = await self.browser.execute_js(EXTRACT_ENTRIES_JS, {
                "container": ENTRY_SELECTOR,
                "link": REPO_LINK_SELECTOR,
                "title": TITLE_SELECTOR,
            })
        except Exception as e:
            print(f"[scan] entry query failed: {e}", flush=True)
            return []
        entries = build_entries(rows)
        for entry in entries:
            print(f"[scan]   {entry.title} -> {entry.external_ref}", flush=True)
        print(f"[scan] {len(entries)} entries extracted", flush=True)
        return entries


class TitleMatcher:
    """Joins form targets to scraped entries by exact title."""

    def find(self, target: DecisionTarget, entries: list[Entry]) -> Optional[Entry]:
        for entry in entries:
            if entry.title == target.title:
                return entry
        return None


class FormReconciler:
    def __init__(self, browser: "BrowserController", matcher: TitleMatcher | None = None):
        self.browser = browser
        self.matcher = matcher or TitleMatcher()

    async def current_targets(self) -> list[DecisionTarget]:
        try:
            rows = await self.browser.execute_js(VOTE_TARGETS_JS, {
                "radio": VOTE_RADIO_SELECTOR,
                "label": VOTE_LABEL_SELECTOR,
            })
        except Exception as e:
            print(f"[scan] form query failed: {e}", flush=True)
            return []
        return build_targets(rows)

    def match(self, targets: list[DecisionTarget], entries: list[Entry]) -> Optional[Matchup]:
        """Pick the first two non-tie targets and attach their entries, if any."""
        candidates = [t for t in targets if not t.is_tie]
        if len(candidates) < 2:
            return None
        first, second = candidates[0], candidates[1]
        tie = next((t for t in targets if t.is_tie), None)

        first_entry = self.matcher.find(first, entries)
        second_entry = self.matcher.find(second, entries)
        for target, entry in ((first, first_entry), (second, second_entry)):
            if entry is None:
                print(f"[scan] no card matches form option '{target.title}'", flush=True)
        return Matchup(
            first=first,
            second=second,
            first_entry=first_entry,
            second_entry=second_entry,
            tie=tie,
        )
