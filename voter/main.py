import asyncio
import argparse
import json
import signal
import sys
from datetime import datetime
from dotenv import load_dotenv

# Force unbuffered output
sys.stdout.reconfigure(line_buffering=True)
sys.stderr.reconfigure(line_buffering=True)

from browser import BrowserController
from credentials import CredentialGate
from readiness import PageReadiness
from scanner import EntryExtractor, FormReconciler
from judge import DecisionJudge
from actuator import VoteSubmitter
from orchestrator import VotingOrchestrator
from config import (
    GEMINI_API_KEY,
    VOTING_URL,
    COOKIE_FILE,
    COOKIE_TIMEOUT_SECONDS,
    COOKIE_POLL_SECONDS,
)


def build_orchestrator(browser: BrowserController, dry_run: bool = False) -> VotingOrchestrator:
    return VotingOrchestrator(
        readiness=PageReadiness(browser),
        extractor=EntryExtractor(browser),
        reconciler=FormReconciler(browser),
        judge=DecisionJudge(GEMINI_API_KEY),
        submitter=VoteSubmitter(browser),
        dry_run=dry_run,
    )


async def wait_for_shutdown(orchestrator: VotingOrchestrator) -> None:
    """Block until SIGINT/SIGTERM. SIGUSR1 prints the current status."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
        loop.add_signal_handler(signal.SIGTERM, stop_event.set)
        if hasattr(signal, "SIGUSR1"):
            loop.add_signal_handler(
                signal.SIGUSR1,
                lambda: print(json.dumps(orchestrator.status(), indent=2), flush=True),
            )
    except NotImplementedError:
        pass  # Windows: fall back to KeyboardInterrupt
    await stop_event.wait()


async def main(
    headless: bool = False,
    dry_run: bool = False,
    once: bool = False,
    cookie_timeout: float = COOKIE_TIMEOUT_SECONDS,
    export_cookies: bool = False,
):
    if not GEMINI_API_KEY:
        print("ERROR: Set GEMINI_API_KEY environment variable", flush=True)
        print("  export GEMINI_API_KEY=your-api-key", flush=True)
        print("  or create a .env file with GEMINI_API_KEY=your-api-key", flush=True)
        sys.exit(1)

    print(f"Starting HackClub Auto Voter", flush=True)
    print(f"Target: {VOTING_URL}", flush=True)
    print(f"Cookie file: {COOKIE_FILE}", flush=True)
    print(f"Headless: {headless} | Dry run: {dry_run} | Once: {once}", flush=True)
    print("-" * 50, flush=True)

    browser = BrowserController()
    await browser.start(headless=headless)
    orchestrator = build_orchestrator(browser, dry_run=dry_run)

    try:
        gate = CredentialGate(browser)
        print(f"[cookies] store status: {gate.store_status()}", flush=True)
        if not await gate.acquire(cookie_timeout, COOKIE_POLL_SECONDS):
            print("[cookies] no cookies applied, continuing unauthenticated", flush=True)
        if export_cookies:
            await gate.export()

        if once:
            await orchestrator.run_once()
        else:
            orchestrator.start()
            try:
                await wait_for_shutdown(orchestrator)
            finally:
                orchestrator.stop()
                await orchestrator.drain()
    finally:
        await browser.stop()
        orchestrator.context.print_summary()

    results = orchestrator.status()
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    results_file = f"voter_status_{timestamp}.json"

    with open(results_file, "w") as f:
        json.dump(results, f, indent=2)

    print(f"\nStatus saved to: {results_file}")

    return results


if __name__ == "__main__":
    load_dotenv()

    parser = argparse.ArgumentParser(description="HackClub Auto Voter")
    parser.add_argument("--headless", action="store_true", help="Run browser in headless mode")
    parser.add_argument("--dry-run", action="store_true", help="Fill the vote form but never submit it")
    parser.add_argument("--once", action="store_true", help="Run a single voting cycle and exit")
    parser.add_argument(
        "--cookie-timeout",
        type=float,
        default=COOKIE_TIMEOUT_SECONDS,
        help="Seconds to wait for cookies in the import file"
    )
    parser.add_argument(
        "--export-cookies",
        action="store_true",
        help="Write a JSON backup of the session cookies after import"
    )
    args = parser.parse_args()

    try:
        asyncio.run(main(
            headless=args.headless,
            dry_run=args.dry_run,
            once=args.once,
            cookie_timeout=args.cookie_timeout,
            export_cookies=args.export_cookies,
        ))
    except KeyboardInterrupt:
        print("\nInterrupted", flush=True)
