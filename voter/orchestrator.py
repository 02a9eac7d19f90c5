"""Scan, decide and submit loop.

One cycle walks READY_CHECK -> EXTRACTING -> RECONCILING -> DECIDING ->
SUBMITTING -> COOLDOWN. A cycle that reaches COOLDOWN schedules the next one
as a fresh task once the cooldown has passed; a cycle that ends INSUFFICIENT
waits for the watchdog timer instead. Both triggers go through `trigger`,
which refuses to start while another cycle (including its cooldown) is in
progress.
"""
import asyncio
from enum import Enum
from typing import TYPE_CHECKING

from config import COOLDOWN_SECONDS, SCAN_INTERVAL_SECONDS
from judge import DecisionError
from metrics import RunContext

if TYPE_CHECKING:
    from readiness import PageReadiness
    from scanner import EntryExtractor, FormReconciler
    from judge import DecisionJudge
    from actuator import VoteSubmitter


class CycleState(str, Enum):
    IDLE = "idle"
    READY_CHECK = "ready_check"
    EXTRACTING = "extracting"
    RECONCILING = "reconciling"
    DECIDING = "deciding"
    SUBMITTING = "submitting"
    COOLDOWN = "cooldown"
    INSUFFICIENT = "insufficient"


class VotingOrchestrator:
    def __init__(
        self,
        readiness: "PageReadiness",
        extractor: "EntryExtractor",
        reconciler: "FormReconciler",
        judge: "DecisionJudge",
        submitter: "VoteSubmitter",
        cooldown: float = COOLDOWN_SECONDS,
        scan_interval: float = SCAN_INTERVAL_SECONDS,
        dry_run: bool = False,
    ):
        self.readiness = readiness
        self.extractor = extractor
        self.reconciler = reconciler
        self.judge = judge
        self.submitter = submitter
        self.cooldown = cooldown
        self.scan_interval = scan_interval
        self.dry_run = dry_run
        self.context = RunContext()
        self.state = CycleState.IDLE
        self._busy = False
        self._watchdog_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    def _enter(self, state: CycleState) -> CycleState:
        self.state = state
        return state

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run_cycle(self, ctx: RunContext | None = None) -> CycleState:
        """Run one pass and return where it ended: INSUFFICIENT or COOLDOWN.

        Votes are counted on `ctx`, the context the cycle started under.
        """
        ctx = ctx or self.context
        self._enter(CycleState.READY_CHECK)
        if not await self.readiness.ensure_ready():
            print("[cycle] voting page not ready, skipping", flush=True)
            return self._enter(CycleState.INSUFFICIENT)

        self._enter(CycleState.EXTRACTING)
        entries = await self.extractor.extract()
        if len(entries) < 2:
            print(f"[cycle] not enough projects for voting ({len(entries)} found)", flush=True)
            return self._enter(CycleState.INSUFFICIENT)

        self._enter(CycleState.RECONCILING)
        targets = await self.reconciler.current_targets()
        matchup = self.reconciler.match(targets, entries)
        if matchup is None:
            print("[cycle] not enough options in the vote form", flush=True)
            return self._enter(CycleState.INSUFFICIENT)

        self._enter(CycleState.DECIDING)
        try:
            decision = await self.judge.decide(matchup)
        except DecisionError as e:
            print(f"[cycle] no decision: {e}", flush=True)
            return self._enter(CycleState.COOLDOWN)
        except Exception as e:
            print(f"[cycle] decision failed unexpectedly: {e}", flush=True)
            return self._enter(CycleState.COOLDOWN)

        target = matchup.target_for(decision.outcome)
        if target is None:
            print(f"[cycle] could not map outcome '{decision.outcome.value}' to a form option", flush=True)
            return self._enter(CycleState.COOLDOWN)

        self._enter(CycleState.SUBMITTING)
        submitted = await self.submitter.submit(
            targets, target.selectable_id, decision.rationale, dry_run=self.dry_run
        )
        if submitted and not self.dry_run:
            count = ctx.record_vote()
            print(f"[cycle] vote no. {count} | voted for: {target.title}", flush=True)
        elif submitted:
            print(f"[cycle] dry run, would vote for: {target.title}", flush=True)
        else:
            print("[cycle] submission skipped, vote form incomplete", flush=True)
        return self._enter(CycleState.COOLDOWN)

    async def trigger(self, source: str, follow_up: bool = True) -> bool:
        """Run a cycle unless stopped or one is already in flight. Returns True if it ran."""
        ctx = self.context
        if not ctx.running:
            return False
        if self._busy:
            ctx.skipped_triggers += 1
            print(f"[cycle] {source} trigger ignored, cycle already running", flush=True)
            return False
        self._busy = True
        ctx.in_cycle = True

        record = ctx.start_cycle(source)
        votes_before = ctx.vote_count
        final = CycleState.IDLE
        error = None
        try:
            final = await self.run_cycle(ctx)
            if follow_up and final == CycleState.COOLDOWN:
                await asyncio.sleep(self.cooldown)
        except Exception as e:
            print(f"[cycle] scan error: {e}", flush=True)
            error = str(e)
            final = CycleState.IDLE
        finally:
            ctx.end_cycle(record, final.value, voted=ctx.vote_count > votes_before, error=error)
            ctx.in_cycle = False
            self._busy = False
            self.state = CycleState.IDLE

        if follow_up and final == CycleState.COOLDOWN and ctx.running:
            self._spawn(self.trigger("continuation"))
        return True

    async def _watchdog(self) -> None:
        while self.context.running:
            await asyncio.sleep(self.scan_interval)
            if self.context.running:
                self._spawn(self.trigger("watchdog"))

    def start(self) -> None:
        if self.context.running:
            return
        self.context = RunContext(running=True)
        print("[cycle] auto-voting started", flush=True)
        self._spawn(self.trigger("start"))
        self._watchdog_task = asyncio.create_task(self._watchdog())

    def stop(self) -> None:
        self.context.running = False
        if self._watchdog_task:
            self._watchdog_task.cancel()
            self._watchdog_task = None
        print("[cycle] auto-voting stopped", flush=True)

    async def drain(self) -> None:
        """Wait for in-flight cycles to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_once(self) -> CycleState:
        """Run a single cycle with no cooldown or follow-up."""
        self.context = RunContext(running=True)
        try:
            await self.trigger("once", follow_up=False)
        finally:
            self.context.running = False
        last = self.context.cycles[-1] if self.context.cycles else None
        return CycleState(last.final_state) if last else CycleState.IDLE

    def status(self) -> dict:
        snapshot = self.context.snapshot()
        snapshot["state"] = self.state.value
        snapshot["dry_run"] = self.dry_run
        return snapshot
