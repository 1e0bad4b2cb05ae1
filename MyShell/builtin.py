import os

from MyShell.exceptions import ShellExit


def builtin_cd(args, session):
    """Change directory"""
    if args:
        path = args[0]
    else:
        path = os.environ.get("HOME")
        if not path:
            return 0
    try:
        session.chdir(path)
        return 0
    except OSError as e:
        print(f"cd: {e}", file=session.stderr)
        return 1


def builtin_pwd(args, session):
    """Print working directory"""
    try:
        cwd = session.getcwd()
    except OSError as e:
        print(f"pwd: {e}", file=session.stderr)
        return 1
    print(cwd, file=session.stdout)
    return 0


def builtin_exit(args, session):
    """Leave the shell; statements still queued on the line are skipped"""
    raise ShellExit(0)


BUILTINS = {
    'cd': builtin_cd,
    'pwd': builtin_pwd,
    'exit': builtin_exit,
}


def is_builtin(pipeline):
    """Builtins are only recognised as a whole single-command statement."""
    return len(pipeline.commands) == 1 and pipeline.commands[0].args[0] in BUILTINS


def execute_builtin(command, session):
    """
    Run a builtin inside the shell process.
    Redirections and & on builtins are ignored.
    Returns: exit_code
    """
    handler = BUILTINS[command.args[0]]
    return handler(command.args[1:], session)
