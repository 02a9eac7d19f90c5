import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CycleRecord:
    cycle_num: int
    trigger: str
    start_time: float
    end_time: Optional[float] = None
    final_state: Optional[str] = None
    voted: bool = False
    error: Optional[str] = None


@dataclass
class RunContext:
    """Counters and run flags for one orchestrator lifetime."""
    start_time: float = field(default_factory=time.time)
    running: bool = False
    in_cycle: bool = False
    vote_count: int = 0
    skipped_triggers: int = 0
    cycles: list[CycleRecord] = field(default_factory=list)
    max_history: int = 200

    def start_cycle(self, trigger: str) -> CycleRecord:
        record = CycleRecord(
            cycle_num=self.cycles[-1].cycle_num + 1 if self.cycles else 1,
            trigger=trigger,
            start_time=time.time(),
        )
        self.cycles.append(record)
        if len(self.cycles) > self.max_history:
            del self.cycles[0]
        return record

    def end_cycle(
        self,
        record: CycleRecord,
        final_state: str,
        voted: bool = False,
        error: Optional[str] = None
    ) -> None:
        record.end_time = time.time()
        record.final_state = final_state
        record.voted = voted
        record.error = error

    def record_vote(self) -> int:
        self.vote_count += 1
        return self.vote_count

    def snapshot(self) -> dict:
        total = self.cycles[-1].cycle_num if self.cycles else 0
        last = self.cycles[-1] if self.cycles else None
        return {
            "running": self.running,
            "in_cycle": self.in_cycle,
            "vote_count": self.vote_count,
            "cycles": total,
            "skipped_triggers": self.skipped_triggers,
            "uptime_seconds": round(time.time() - self.start_time, 1),
            "last_cycle": None if last is None else {
                "num": last.cycle_num,
                "trigger": last.trigger,
                "state": last.final_state,
                "voted": last.voted,
                "time_seconds": round((last.end_time or time.time()) - last.start_time, 2),
                "error": last.error,
            },
        }

    def print_summary(self) -> None:
        s = self.snapshot()
        print(f"\n{'='*50}")
        print(f"AUTO VOTER - STATUS")
        print(f"{'='*50}")
        print(f"Running: {s['running']} (in cycle: {s['in_cycle']})")
        print(f"Votes submitted: {s['vote_count']}")
        print(f"Cycles: {s['cycles']} (skipped triggers: {s['skipped_triggers']})")
        print(f"Uptime: {s['uptime_seconds']:.1f}s")
        print(f"{'='*50}\n", flush=True)
