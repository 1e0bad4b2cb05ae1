import errno
import os
import subprocess

import psutil

from MyShell.config import ABORT_GRACE_PERIOD, SHELL_NAME
from MyShell.exceptions import LaunchError, PipeCreationError
from MyShell.logger import get_logger

log = get_logger(__name__)

# exec failures that mean "this file can't be run", as opposed to a system failure
NOT_EXECUTABLE = (errno.EACCES, errno.ENOEXEC, errno.EISDIR, errno.ENOTDIR,
                  errno.ELOOP, errno.ENAMETOOLONG)

STATUS_REDIRECT_FAILED = 1
STATUS_NOT_EXECUTABLE = 126
STATUS_NOT_FOUND = 127


class Stage:
    """One pipeline stage: a running process, or the status of a stage that never started."""

    def __init__(self, command, proc=None, status=None):
        self.command = command
        self.proc = proc
        self.status = status

    def wait(self):
        if self.proc is None:
            return self.status
        return exit_status(self.proc.wait())


def exit_status(returncode):
    """Popen reports death by signal N as -N; shells report 128+N."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def close_fds(fds):
    for fd in fds:
        try:
            os.close(fd)
        except OSError:
            pass


def create_pipes(count):
    """
    Allocate every pipe of the pipeline before anything is spawned.
    Returns: list of (read_fd, write_fd)
    Raises: PipeCreationError, after closing the pipes already made
    """
    pipes = []
    try:
        for _ in range(count):
            pipes.append(os.pipe())
    except OSError as e:
        close_fds(fd for pair in pipes for fd in pair)
        raise PipeCreationError(e.strerror or str(e)) from e
    return pipes


def open_redirect(path, flags, label, session, opened):
    """
    Open a redirection target relative to the session cwd.
    Returns: fd, or None after reporting the failure
    """
    try:
        fd = os.open(session.resolve(path), flags, 0o644)
    except OSError as e:
        print(f"{SHELL_NAME}: {label}: {path}: {e.strerror}", file=session.stderr)
        return None
    opened.append(fd)
    return fd


def usable_directory(path):
    """True if a child could chdir into path."""
    return os.path.isdir(path) and os.access(path, os.X_OK)


def spawn(command, stdin, stdout, session, background=False):
    """
    Start one stage.
    Returns: Stage (with proc=None and a status if the program can't be run)
    Raises: LaunchError when the system refuses to create the process
    """
    args = command.args
    kwargs = {}
    if background:
        # own process group: Ctrl+C at the terminal must not reach it
        kwargs["preexec_fn"] = os.setpgrp

    session.flush()
    try:
        proc = subprocess.Popen(
            args,
            stdin=stdin,
            stdout=stdout,
            stderr=session.stderr_fd(),
            cwd=session.cwd,
            close_fds=True,
            **kwargs
        )
    except OSError as e:
        if e.filename == session.cwd and not usable_directory(session.cwd):
            print(f"{SHELL_NAME}: {session.cwd}: {e.strerror}", file=session.stderr)
            return Stage(command, status=STATUS_REDIRECT_FAILED)
        if isinstance(e, FileNotFoundError):
            print(f"{SHELL_NAME}: command not found: {args[0]}", file=session.stderr)
            return Stage(command, status=STATUS_NOT_FOUND)
        if e.errno in NOT_EXECUTABLE:
            print(f"{SHELL_NAME}: {args[0]}: {e.strerror}", file=session.stderr)
            return Stage(command, status=STATUS_NOT_EXECUTABLE)
        raise LaunchError(e.strerror or str(e), syscall="fork") from e
    except subprocess.SubprocessError as e:
        raise LaunchError(str(e), syscall="fork") from e

    log.debug("spawned pid %d: %s", proc.pid, " ".join(args))
    return Stage(command, proc=proc)


def abort_stages(procs):
    """
    Undo a partial launch: terminate the stages already running together
    with anything they started, kill whatever outlives the grace period,
    then reap our own children.
    """
    victims = []
    for proc in procs:
        try:
            parent = psutil.Process(proc.pid)
            victims.extend(parent.children(recursive=True))
            victims.append(parent)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue

    for victim in victims:
        try:
            victim.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

    _, alive = psutil.wait_procs(victims, timeout=ABORT_GRACE_PERIOD)
    for victim in alive:
        try:
            victim.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

    for proc in procs:
        proc.wait()
    log.warning("aborted partial launch, %d stage(s) terminated", len(procs))


def launch(pipeline, session):
    """
    Start every stage of the pipeline, all or nothing.
    Returns: list of Stage in pipeline order
    Raises: LaunchError (nothing is left running)
    """
    commands = pipeline.commands
    last = len(commands) - 1
    background = pipeline.background

    pipes = create_pipes(last)
    opened = []
    stages = []
    try:
        for idx, cmd in enumerate(commands):
            stdin = pipes[idx - 1][0] if idx > 0 else session.stdin
            stdout = pipes[idx][1] if idx < last else session.stdout_fd()

            # redirection wins over the pipe for the first input and the last output
            if idx == 0 and cmd.input_redirect:
                stdin = open_redirect(cmd.input_redirect, os.O_RDONLY,
                                      "input redirection", session, opened)
                if stdin is None:
                    stages.append(Stage(cmd, status=STATUS_REDIRECT_FAILED))
                    continue

            if idx == last and cmd.output_redirect:
                flags = os.O_WRONLY | os.O_CREAT
                flags |= os.O_APPEND if cmd.output_redirect.append else os.O_TRUNC
                stdout = open_redirect(cmd.output_redirect.path, flags,
                                       "output redirection", session, opened)
                if stdout is None:
                    stages.append(Stage(cmd, status=STATUS_REDIRECT_FAILED))
                    continue

            stages.append(spawn(cmd, stdin, stdout, session, background))
    except LaunchError:
        abort_stages([s.proc for s in stages if s.proc is not None])
        raise
    finally:
        # children hold their own copies; none of these may outlive the launch
        close_fds(opened)
        close_fds(fd for pair in pipes for fd in pair)

    return stages


def execute_pipeline(pipeline, session):
    """
    Execute pipeline of commands.
    Foreground pipelines are waited for stage by stage; background ones are
    handed to the session's job table.
    Returns: exit_code of the last stage (0 for a background launch)
    """
    if pipeline.background:
        session.jobs.reserve()

    stages = launch(pipeline, session)

    if pipeline.background:
        procs = [s.proc for s in stages if s.proc is not None]
        if procs:
            job = session.jobs.add(procs, str(pipeline))
            if session.interactive:
                print(f"[{job.pid}] started in background: {job.cmdline}", file=session.stdout)
        return 0

    statuses = [stage.wait() for stage in stages]
    return statuses[-1]
