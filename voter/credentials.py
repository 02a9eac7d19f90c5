"""Cookie bootstrap from a human-editable text file.

The operator logs in with a normal browser, copies the session cookies into
``import-cookies.txt`` (one ``name=value`` per line) and the gate applies them
to the Playwright context. After a successful import the file is rewritten
with a success marker appended, so it doubles as an audit trail and can be
re-applied on the next start.
"""
import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from config import COOKIE_DOMAIN, COOKIE_FILE, BACKUP_FILE
from models import CredentialRecord

if TYPE_CHECKING:
    from browser import BrowserController

SUCCESS_MARKER = "IMPORT SUCCESSFUL"

TEMPLATE = """# HackClub Cookie Import
# Paste your cookies here (one per line)
# Format: cookieName=cookieValue
# Example:
# user_id=your_user_id_here

# Remove these comments and add real cookies:
"""

SUCCESS_HEADER = f"""# HackClub Cookie Import - {SUCCESS_MARKER}
# These cookies were imported into the browser session.
# You can keep this file for future imports.

# If you want to add new cookies, add them below:
# Format: cookieName=cookieValue

"""


def parse_credential_lines(text: str) -> list[CredentialRecord]:
    """Parse `name=value` lines, skipping comments, blanks and success markers.

    Only the first `=` separates name from value. A repeated name keeps the
    last value seen.
    """
    records: dict[str, CredentialRecord] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if SUCCESS_MARKER in line:
            continue
        name, value = line.split("=", 1)
        name, value = name.strip(), value.strip()
        if not name or not value:
            continue
        records[name] = CredentialRecord(name=name, value=value)
    return list(records.values())


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class CredentialGate:
    def __init__(
        self,
        browser: "BrowserController",
        store_path: Path = COOKIE_FILE,
        domain: str = COOKIE_DOMAIN,
    ):
        self.browser = browser
        self.store_path = Path(store_path)
        self.domain = domain

    def store_status(self) -> str:
        """One of: absent, unreadable, template, populated, applied."""
        if not self.store_path.exists():
            return "absent"
        try:
            content = self.store_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            print(f"[cookies] cannot read {self.store_path}: {e}", flush=True)
            return "unreadable"
        if SUCCESS_MARKER in content:
            return "applied"
        if parse_credential_lines(content):
            return "populated"
        return "template"

    def ensure_store(self) -> bool:
        """Write the instruction template if the store is missing. Returns True if created."""
        if self.store_path.exists():
            return False
        try:
            self.store_path.write_text(TEMPLATE, encoding="utf-8")
        except OSError as e:
            print(f"[cookies] cannot create {self.store_path}: {e}", flush=True)
            return False
        print(f"[cookies] created {self.store_path}", flush=True)
        print("[cookies]   1. log in at https://summer.hackclub.com in your browser", flush=True)
        print("[cookies]   2. paste your cookies into the file (one per line: name=value)", flush=True)
        print("[cookies]   3. save it; the file is checked automatically", flush=True)
        return True

    async def acquire(self, max_wait: float = 300.0, poll_interval: float = 5.0) -> bool:
        """Poll the store until a batch of cookies is applied or `max_wait` expires."""
        self.ensure_store()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max_wait

        while True:
            if await self.check_and_apply():
                return True
            remaining = deadline - loop.time()
            if remaining <= 0:
                print(f"[cookies] timeout after {max_wait:.0f}s, continuing without fresh cookies", flush=True)
                return False
            await asyncio.sleep(min(poll_interval, remaining))

    async def check_and_apply(self) -> bool:
        """Read the store once and apply whatever records it holds."""
        try:
            if not self.store_path.exists():
                return False
            content = self.store_path.read_text(encoding="utf-8-sig")
            records = parse_credential_lines(content)
            if not records:
                return False

            print(f"[cookies] importing {len(records)} cookies...", flush=True)
            await self.apply(records)
            self._mark_applied(content)
            print("[cookies] import complete, store marked", flush=True)
            return True
        except Exception as e:
            print(f"[cookies] import failed: {e}", flush=True)
            return False

    async def apply(self, records: list[CredentialRecord]) -> None:
        cookies = [
            {
                "name": record.name,
                "value": record.value,
                "domain": self.domain,
                "path": "/",
                "secure": True,
                "httpOnly": False,
            }
            for record in records
        ]
        await self.browser.add_cookies(cookies)
        for record in records:
            print(f"[cookies]   set {record.name}", flush=True)

    def _mark_applied(self, content: str) -> None:
        header = "" if SUCCESS_MARKER in content else SUCCESS_HEADER
        body = content if content.endswith("\n") else content + "\n"
        marker = f"\n# {SUCCESS_MARKER}: import completed at {_timestamp()}\n"
        self.store_path.write_text(header + body + marker, encoding="utf-8")

    async def export(self, domain: str | None = None, path: Path = BACKUP_FILE) -> Path | None:
        """Write the session's cookies for `domain` to a JSON backup file."""
        domain = domain or self.domain
        try:
            cookies = await self.browser.get_cookies()
            bare = domain.lstrip(".")
            export_data = {
                "timestamp": datetime.now().isoformat(),
                "cookies": [
                    {
                        "name": c["name"],
                        "value": c["value"],
                        "domain": c["domain"],
                        "path": c.get("path", "/"),
                    }
                    for c in cookies
                    if c.get("domain", "").lstrip(".").endswith(bare)
                ],
            }
            path = Path(path)
            with open(path, "w") as f:
                json.dump(export_data, f, indent=2)
            print(f"[cookies] exported {len(export_data['cookies'])} cookies to {path}", flush=True)
            return path
        except Exception as e:
            print(f"[cookies] export failed: {e}", flush=True)
            return None
