from MyShell.config import MAX_BACKGROUND_JOBS
from MyShell.exceptions import JobLimitError
from MyShell.logger import get_logger

log = get_logger(__name__)


class BackgroundJob:
    """A detached pipeline: every stage's Popen handle plus its command line."""

    def __init__(self, procs, cmdline):
        self.procs = list(procs)
        self.cmdline = cmdline

    @property
    def pid(self):
        return self.procs[-1].pid if self.procs else None

    @property
    def returncode(self):
        return self.procs[-1].returncode if self.procs else None

    def poll(self):
        """
        Reap finished stages without blocking.
        Returns: True once every stage has exited
        """
        exited = [p.poll() is not None for p in self.procs]
        return all(exited)

    def __repr__(self):
        return f"BackgroundJob(pid={self.pid}, cmd={self.cmdline!r})"


class JobTable:
    """
    Bounded registry of background jobs.
    reap() is the non-blocking wait that collects finished children; the
    read-execute loop calls it once per line and reserve() calls it before
    each background launch.
    """

    def __init__(self, limit=MAX_BACKGROUND_JOBS):
        self.limit = limit
        self.jobs = {}

    def __len__(self):
        return len(self.jobs)

    def __iter__(self):
        return iter(list(self.jobs.values()))

    def reserve(self):
        """Make sure there is room for one more job before anything is spawned."""
        self.reap()
        if len(self.jobs) >= self.limit:
            raise JobLimitError(self.limit)

    def add(self, procs, cmdline):
        job = BackgroundJob(procs, cmdline)
        self.jobs[job.pid] = job
        log.debug("background job %d started: %s", job.pid, cmdline)
        return job

    def reap(self):
        """
        Collect every job whose stages have all exited.
        Returns: list of finished jobs
        """
        finished = [job for job in self.jobs.values() if job.poll()]
        for job in finished:
            del self.jobs[job.pid]
            log.debug("background job %d finished with status %s", job.pid, job.returncode)
        return finished
