# Constants.py
# Description: Constants for the Quick Notes sync engine
#
# Imports
#
# 3rd-Party Imports
#
# Local Imports
#
########################################################################################################################
#
# Functions:

# --- Remote Store ---
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
USER_AGENT = "QuickNotes-Sync"
REMOTE_NOTES_FILE = "notes.json"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0

# --- Snapshot ---
DEFAULT_SNAPSHOT_VERSION = "1.0.0"
NOTE_PRIORITIES = ("high", "medium", "low")
DEFAULT_NOTE_PRIORITY = "medium"

# --- Credentials ---
TOKEN_ENV_VARS = ("QUICK_NOTES_GITHUB_TOKEN", "GITHUB_TOKEN")

# --- Auto-sync ---
DEFAULT_AUTO_SYNC_INTERVAL_SECONDS = 0  # <= 0 disables background sync

#
# End of Constants.py
########################################################################################################################
