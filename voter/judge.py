import json
from typing import Optional
from google import genai
from google.genai import types

from config import MODEL_NAME, TEMPERATURE, MAX_OUTPUT_TOKENS, THINKING_BUDGET, README_CHAR_LIMIT
from models import Decision, Matchup, Outcome
from readme_fetcher import ReadmeFetcher


class DecisionError(Exception):
    """No usable decision could be obtained for this matchup."""


class DecisionFormatError(DecisionError):
    """The model replied, but not with the JSON we asked for."""


class DecisionUnavailableError(DecisionError):
    """The model call itself failed."""


WINNER_ALIASES = {
    "project1": Outcome.FIRST,
    "first": Outcome.FIRST,
    "project2": Outcome.SECOND,
    "second": Outcome.SECOND,
    "tie": Outcome.TIE,
}


def build_prompt(project1: str, readme1: str, project2: str, readme2: str) -> str:
    readme1 = readme1[:README_CHAR_LIMIT] if readme1 else "No README"
    readme2 = readme2[:README_CHAR_LIMIT] if readme2 else "No README"
    return f"""You are a judge for a hackathon. Two projects are up for voting:
Project 1: {project1}
README 1: {readme1}
Project 2: {project2}
README 2: {readme2}

Please analyze both projects. Decide which project is better or if it's a tie. Base your decision on technical merit, creativity, and how well the story of its creation is told. Provide a concise explanation for your choice.

Answer ONLY in the following JSON format:
{{"winner": "project1" | "project2" | "tie", "explanation": "Your explanation in 2-3 sentences, in English."}}"""


def _first_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} fragment in text, ignoring braces inside strings."""
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_decision(text: str) -> Decision:
    """Parse the model reply into a Decision.

    Raises DecisionFormatError if no JSON object can be recovered.
    """
    text = (text or "").strip()
    # Remove markdown code blocks if present
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0].strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        fragment = _first_json_object(text)
        if fragment is None:
            raise DecisionFormatError(f"no JSON object in reply: {text[:200]!r}")
        try:
            data = json.loads(fragment)
        except json.JSONDecodeError as e:
            raise DecisionFormatError(f"embedded JSON did not parse: {e}") from e

    if not isinstance(data, dict):
        raise DecisionFormatError(f"expected a JSON object, got {type(data).__name__}")

    winner = str(data.get("winner", "")).strip().lower()
    return Decision(
        outcome=WINNER_ALIASES.get(winner, Outcome.UNKNOWN),
        rationale=str(data.get("explanation") or "").strip(),
    )


class DecisionJudge:
    def __init__(self, api_key: str | None, fetcher: ReadmeFetcher | None = None, client=None):
        self.client = client or genai.Client(api_key=api_key)
        self.fetcher = fetcher or ReadmeFetcher()
        self.model_name = MODEL_NAME

    async def _supporting_text(self, ref: str | None) -> str:
        if not ref:
            return ""
        try:
            return await self.fetcher.fetch(ref) or ""
        except Exception as e:
            print(f"[judge] README fetch failed for {ref}: {e}", flush=True)
            return ""

    async def decide(self, matchup: Matchup) -> Decision:
        readme1 = await self._supporting_text(matchup.first_entry.external_ref if matchup.first_entry else None)
        readme2 = await self._supporting_text(matchup.second_entry.external_ref if matchup.second_entry else None)
        prompt = build_prompt(matchup.first.title, readme1, matchup.second.title, readme2)

        print(f"[judge] asking {self.model_name}: '{matchup.first.title}' vs '{matchup.second.title}' "
              f"(readme chars: {len(readme1)}/{len(readme2)}, thinking={THINKING_BUDGET})", flush=True)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=TEMPERATURE,
                    max_output_tokens=MAX_OUTPUT_TOKENS,
                    response_mime_type="application/json",
                    thinking_config=types.ThinkingConfig(thinking_budget=THINKING_BUDGET),
                ),
            )
        except Exception as e:
            raise DecisionUnavailableError(f"model call failed: {e}") from e

        text = response.text or ""
        print(f"[judge] raw response: {text[:300]}", flush=True)
        decision = parse_decision(text)
        print(f"[judge] parsed: outcome={decision.outcome.value}", flush=True)
        return decision
