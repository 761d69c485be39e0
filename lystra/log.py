import os
import sys
from datetime import datetime

CACHE_BASE_DIR = os.path.join(
    os.getenv('XDG_CACHE_HOME', os.path.expanduser('~/.cache')),
    'waybar',
    'lystra'
)
LOGS_DIR = os.path.join(CACHE_BASE_DIR, "logs")


def get_current_log_file_path():
    today_date = datetime.now().strftime("%Y-%m-%d")
    return os.path.join(LOGS_DIR, f"{today_date}.log")

def debug_log(message):
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    log_file_path = get_current_log_file_path()
    try:
        os.makedirs(LOGS_DIR, exist_ok=True)
        with open(log_file_path, "a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] DEBUG: {message}\n")
    except IOError as e:
        print(f"ERROR: Could not write to debug log file {log_file_path}: {e}", file=sys.stderr, flush=True)

def start_session_log():
    """Truncate today's log with a banner so each run starts from a clean file."""
    os.makedirs(LOGS_DIR, exist_ok=True)
    with open(get_current_log_file_path(), "w", encoding="utf-8") as f:
        f.write(f"--- Starting lystra debug session at {datetime.now()} ---\n")

def log_exception(prefix):
    """Append the active exception's traceback to today's log."""
    import traceback
    debug_log(prefix)
    try:
        with open(get_current_log_file_path(), "a", encoding="utf-8") as log_f:
            traceback.print_exc(file=log_f)
    except IOError as e:
        print(f"ERROR: Could not write traceback to log: {e}", file=sys.stderr, flush=True)
