import os

SHELL_NAME = "myshell"

# {user} and {base} are filled in by shell.prompt()
PROMPT = os.getenv("MYSHELL_PROMPT", "{user}@myshell:{base}$ ")

MAX_BACKGROUND_JOBS = int(os.getenv("MYSHELL_MAX_JOBS", "64"))

# seconds to wait after SIGTERM before SIGKILL when a launch is aborted
ABORT_GRACE_PERIOD = float(os.getenv("MYSHELL_ABORT_GRACE", "1.0"))

LOG_LEVEL = os.getenv("MYSHELL_LOG_LEVEL", "WARNING").upper()
LOG_FILE = os.getenv("MYSHELL_LOG_FILE")
