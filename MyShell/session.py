import errno
import os
import stat
import sys

from MyShell.job_control import JobTable


class Session:
    """
    Per-interpreter state: standard streams, working directory and the
    background job table.

    Children are spawned in session.cwd and relative redirections are
    resolved against it, so several sessions can share one process.
    """

    def __init__(self, stdin=None, stdout=None, stderr=None, cwd=None,
                 interactive=False, owns_process_cwd=False, jobs=None):
        self.stdin = stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.cwd = os.path.abspath(cwd) if cwd else os.getcwd()
        self.interactive = interactive
        self.owns_process_cwd = owns_process_cwd
        self.jobs = jobs if jobs is not None else JobTable()
        self.last_status = 0

    def resolve(self, path):
        """Make path absolute against the session working directory."""
        return os.path.normpath(os.path.join(self.cwd, path))

    def chdir(self, path):
        """
        Change the session working directory.
        Raises: OSError (FileNotFoundError, NotADirectoryError, PermissionError)
        """
        target = self.resolve(path)
        if self.owns_process_cwd:
            os.chdir(target)
        else:
            mode = os.stat(target).st_mode
            if not stat.S_ISDIR(mode):
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), target)
            if not os.access(target, os.X_OK):
                raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), target)
        self.cwd = target

    def getcwd(self):
        """
        Return the working directory, checking it still exists.
        Raises: OSError
        """
        os.stat(self.cwd)
        return self.cwd

    def stdout_fd(self):
        return self.stdout.fileno()

    def stderr_fd(self):
        return self.stderr.fileno()

    def flush(self):
        """Flush buffered text so it lands before any child's output."""
        self.stdout.flush()
        self.stderr.flush()
