import os
import signal
import subprocess
import sys
import tempfile
from collections import namedtuple

from MyShell.builtin import execute_builtin, is_builtin
from MyShell.config import PROMPT, SHELL_NAME
from MyShell.exceptions import ShellError, ShellExit
from MyShell.executor import execute_pipeline
from MyShell.logger import get_logger, setup_logging
from MyShell.parser import parse_line
from MyShell.session import Session

log = get_logger(__name__)

# What a front-end gets back for one submitted line
ShellResult = namedtuple("ShellResult", ["stdout", "stderr", "returncode"])


def prompt(session=None):
    """Generate shell prompt"""
    user = os.getenv("USER") or os.getenv("USERNAME") or "user"
    cwd = session.cwd if session else os.getcwd()
    base = os.path.basename(cwd) or "/"
    return PROMPT.format(user=user, base=base)


def handle_sigint(signum, frame):
    # While a command runs, Ctrl+C only moves to a new line and the shell keeps going.
    # Foreground children share the terminal's process group and get it themselves.
    print()


def init_signal_handlers():
    signal.signal(signal.SIGINT, handle_sigint)


def read_raw_line(fd):
    """
    Read one line from fd a byte at a time, so nothing past the newline is
    consumed and child processes still find the rest of their input.
    Returns: line without the newline, or None at end of input
    """
    data = bytearray()
    while True:
        chunk = os.read(fd, 1)
        if not chunk:
            if not data:
                return None
            break
        if chunk == b"\n":
            break
        data += chunk
    return data.decode(errors="replace")


def read_line(session):
    """
    Read the next input line.
    Interactive: Ctrl+C abandons the line being typed and prompts again.
    Returns: the line, or None at end of input
    """
    if not session.interactive:
        return read_raw_line(sys.stdin.fileno())

    while True:
        # only while waiting at the prompt does Ctrl+C raise KeyboardInterrupt
        signal.signal(signal.SIGINT, signal.default_int_handler)
        try:
            return input(prompt(session))
        except EOFError:
            print()
            return None
        except KeyboardInterrupt:
            print()
        finally:
            signal.signal(signal.SIGINT, handle_sigint)


def report_finished_jobs(session):
    """Reap background jobs; announce the finished ones in interactive mode."""
    for job in session.jobs.reap():
        if session.interactive:
            print(f"[{job.pid}] finished: {job.cmdline}", file=session.stdout)


def run_statement(pipeline, session):
    if is_builtin(pipeline):
        return execute_builtin(pipeline.commands[0], session)
    return execute_pipeline(pipeline, session)


def run_line(line, session):
    """
    Run every statement on the line, left to right.
    A failing statement is reported and the next one still runs.
    Returns: exit_code of the last statement
    Raises: ShellExit
    """
    try:
        for pipeline in parse_line(line):
            try:
                session.last_status = run_statement(pipeline, session)
            except ShellError as e:
                log.debug("statement %r failed: %s", str(pipeline), e)
                print(f"{SHELL_NAME}: {e}", file=session.stderr)
                session.last_status = 1
    finally:
        session.flush()
    return session.last_status


def capture(line, cwd=None):
    """
    Run one line in a fresh, non-interactive session and collect its output.
    Background work is launched and left running; nothing of it is returned.
    Returns: ShellResult(stdout, stderr, returncode)
    """
    with tempfile.TemporaryFile("w+") as out, tempfile.TemporaryFile("w+") as err:
        session = Session(stdin=subprocess.DEVNULL, stdout=out, stderr=err, cwd=cwd)
        try:
            returncode = run_line(line, session)
        except ShellExit as e:
            returncode = e.code
        session.flush()
        out.seek(0)
        err.seek(0)
        return ShellResult(out.read(), err.read(), returncode)


def main_loop():
    """Main shell loop"""
    setup_logging()
    interactive = sys.stdin.isatty()
    if interactive:
        init_signal_handlers()

    session = Session(interactive=interactive, owns_process_cwd=True)
    log.debug("shell started (interactive=%s, cwd=%s)", interactive, session.cwd)

    while True:
        report_finished_jobs(session)
        line = read_line(session)
        if line is None:
            break

        if not line.strip():
            continue

        try:
            run_line(line, session)
        except ShellExit as e:
            return e.code

    return 0
