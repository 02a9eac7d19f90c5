import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (parent of voter/)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
MODEL_NAME = os.getenv("VOTER_MODEL", "gemini-3-flash-preview")
TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 2048
THINKING_BUDGET = 512
README_CHAR_LIMIT = 1000

VOTING_URL = "https://summer.hackclub.com/votes/new"
TARGET_PATH = "/votes/new"
COOKIE_DOMAIN = ".hackclub.com"
COOKIE_FILE = Path(os.getenv("VOTER_COOKIE_FILE", "import-cookies.txt"))
BACKUP_FILE = Path(os.getenv("VOTER_BACKUP_FILE", "hackclub-cookies-backup.json"))
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Timing, all in seconds
COOKIE_TIMEOUT_SECONDS = float(os.getenv("VOTER_COOKIE_TIMEOUT", "300"))
COOKIE_POLL_SECONDS = 5.0
READY_ATTEMPTS = 3
NAV_RETRY_SECONDS = 4.0
NAV_SETTLE_SECONDS = 8.0
CONFIRM_SETTLE_SECONDS = 3.0
COOLDOWN_SECONDS = float(os.getenv("VOTER_COOLDOWN", "5"))
SCAN_INTERVAL_SECONDS = float(os.getenv("VOTER_SCAN_INTERVAL", "300"))

# Page selectors
ENTRY_SELECTOR = "[data-project-index]"
REPO_LINK_SELECTOR = 'a[href*="github.com"]'
TITLE_SELECTOR = "h1, h2, h3, .text-xl, .text-3xl"
VOTE_RADIO_SELECTOR = 'input[type="radio"][name="vote[winning_project_id]"]'
VOTE_LABEL_SELECTOR = "div > span"
VOTE_FORM_SELECTOR = 'form[action="/votes"]'
EXPLANATION_SELECTOR = 'textarea[name="vote[explanation]"]'
SUBMIT_SELECTOR = 'input[type="submit"], button[type="submit"]'
TIE_SENTINEL = "tie"
