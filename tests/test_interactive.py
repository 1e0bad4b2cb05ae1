"""
End-to-end tests: drive main.py through a pseudo-terminal (pexpect) and
through plain pipes for the non-interactive mode.
"""

import os
import subprocess
import sys
import time
import unittest

import pexpect

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
MAIN = os.path.join(ROOT, "main.py")
PROMPT = r"@myshell:[^\r\n]*\$ "


def run_script(script):
    """Feed lines to the shell on a pipe, the way a non-tty caller would."""
    return subprocess.run(
        [sys.executable, MAIN],
        input=script,
        capture_output=True,
        text=True,
        cwd=ROOT,
        timeout=30,
    )


class TestInteractiveSession(unittest.TestCase):

    def setUp(self):
        env = dict(os.environ, USER="tester")
        self.shell = pexpect.spawn(sys.executable, [MAIN], cwd=ROOT, env=env,
                                   encoding="utf-8", timeout=10)
        self.shell.expect(PROMPT)

    def tearDown(self):
        if self.shell.isalive():
            self.shell.terminate(force=True)

    def test_cd_then_pwd(self):
        self.shell.sendline("cd /tmp")
        self.shell.expect(r"tester@myshell:tmp\$ ")
        self.shell.sendline("pwd")
        self.shell.expect(r"\r\n/tmp\r\n")
        self.shell.expect(PROMPT)

    def test_pipeline(self):
        self.shell.sendline("echo one two | wc -w")
        self.shell.expect(r"\r\n\s*2\r\n")
        self.shell.expect(PROMPT)

    def test_background_then_foreground(self):
        start = time.monotonic()
        self.shell.sendline("sleep 5 &")
        self.shell.expect(r"started in background: sleep 5")
        self.shell.expect(PROMPT)
        self.shell.sendline("echo done")
        self.shell.expect(r"\r\ndone\r\n")
        self.assertLess(time.monotonic() - start, 4)

    def test_ctrl_c_at_prompt_keeps_shell(self):
        self.shell.sendintr()
        self.shell.expect(PROMPT)
        self.shell.sendline("echo alive")
        self.shell.expect(r"\r\nalive\r\n")

    def test_ctrl_c_interrupts_foreground_command(self):
        self.shell.sendline("sleep 30")
        time.sleep(0.5)
        self.shell.sendintr()
        self.shell.expect(PROMPT, timeout=5)
        self.shell.sendline("echo back")
        self.shell.expect(r"\r\nback\r\n")

    def test_exit(self):
        self.shell.sendline("exit")
        self.shell.expect(pexpect.EOF)
        self.shell.close()
        self.assertEqual(self.shell.exitstatus, 0)

    def test_end_of_input(self):
        self.shell.sendeof()
        self.shell.expect(pexpect.EOF)
        self.shell.close()
        self.assertEqual(self.shell.exitstatus, 0)


class TestScriptedInput(unittest.TestCase):

    def test_lines_run_in_order(self):
        result = run_script("echo a\n\necho b; echo c\n")
        self.assertEqual(result.stdout, "a\nb\nc\n")
        self.assertEqual(result.returncode, 0)

    def test_no_prompt_without_tty(self):
        result = run_script("echo a\n")
        self.assertNotIn("@myshell", result.stdout)

    def test_child_reads_remaining_input(self):
        result = run_script("cat\nhello\nworld\n")
        self.assertEqual(result.stdout, "hello\nworld\n")
        self.assertEqual(result.returncode, 0)

    def test_line_after_child_input_still_runs(self):
        result = run_script("sh -c 'read x; echo got:$x'\nfirst\necho second\n")
        self.assertEqual(result.stdout, "got:first\nsecond\n")

    def test_exit_skips_rest(self):
        result = run_script("echo a; exit; echo b\necho c\n")
        self.assertEqual(result.stdout, "a\n")
        self.assertEqual(result.returncode, 0)

    def test_end_of_input_terminates(self):
        result = run_script("false\n")
        self.assertEqual(result.returncode, 0)

    def test_external_status_not_propagated(self):
        result = run_script("sh -c 'exit 5'\n")
        self.assertEqual(result.returncode, 0)

    def test_errors_reported_on_stderr(self):
        result = run_script("no-such-program-xyz\ncd /no/such/dir\necho ok\n")
        self.assertIn("command not found: no-such-program-xyz", result.stderr)
        self.assertIn("cd:", result.stderr)
        self.assertEqual(result.stdout, "ok\n")


if __name__ == "__main__":
    unittest.main()
