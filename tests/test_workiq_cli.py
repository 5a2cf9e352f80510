import io
import json
import os
import sys
import unittest
from contextlib import redirect_stderr
from unittest.mock import patch

from workiq_assistant import cli
from tests.fakes import FakeRunner, missing, ok
from tests.fixtures import TempDirMixin, bin_path, capture_stdout, repo_root, run, write_text, write_yaml


class WorkIQCLITests(TempDirMixin, unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.runner = FakeRunner(default=ok(""))
        self.out_dir = os.path.join(self.tmpdir, "output")
        env = {
            "WORKIQ_CONFIG": os.path.join(self.tmpdir, "config.yaml"),
            "WORKIQ_CACHE_DIR": os.path.join(self.tmpdir, "cache"),
            "WORKIQ_OUTPUT_DIR": self.out_dir,
        }
        patches = [
            patch.dict(os.environ, env, clear=True),
            patch("workiq_assistant.cli.SubprocessRunner", return_value=self.runner),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def _run(self, *argv):
        err = io.StringIO()
        with capture_stdout() as out, redirect_stderr(err):
            rc = cli.main(list(argv))
        return rc, out.getvalue(), err.getvalue()

    def test_ask_prints_answer(self):
        self.runner.answer("What meetings do I have today?", stdout="1. Standup\n")
        rc, out, _ = self._run("ask", "What", "meetings", "do", "I", "have", "today?")
        self.assertEqual(rc, 0)
        self.assertEqual(out, "1. Standup\n")

    def test_ask_passes_tenant(self):
        self.runner.add(["workiq", "ask", "-q", "q", "-t", "contoso"], stdout="scoped")
        rc, out, _ = self._run("ask", "q", "--tenant", "contoso", "--output", "json")
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out), {"question": "q", "tenant": "contoso", "answer": "scoped"})

    def test_ask_extract_json(self):
        self.runner.answer("stats", stdout='Here:\n```json\n{"count": 3}\n```')
        rc, out, _ = self._run("ask", "stats", "--extract-json")
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out), {"count": 3})

    def test_missing_tool_exits_one(self):
        self.runner.default = missing()
        rc, _, err = self._run("ask", "q")
        self.assertEqual(rc, 1)
        self.assertIn("Error: Work IQ CLI not found: workiq", err)
        self.assertIn("Hint: Install with: npm install -g @microsoft/workiq", err)

    def test_demo_requires_tool(self):
        self.runner.add(["workiq", "version"], returncode=127)
        rc, _, err = self._run("demo")
        self.assertEqual(rc, 1)
        self.assertIn("not found", err)

    def test_demo_runs_category(self):
        self.runner.add(["workiq", "version"], stdout="workiq 1.0")
        rc, out, _ = self._run("demo", "-c", "people")
        self.assertEqual(rc, 0)
        self.assertIn("👥 PEOPLE QUERIES", out)
        self.assertIn("Results are cached for 1h", out)

    def test_briefing_writes_file(self):
        rc, out, _ = self._run("briefing", "contoso", "markdown")
        self.assertEqual(rc, 0)
        files = os.listdir(self.out_dir)
        self.assertEqual(len(files), 1)
        self.assertTrue(files[0].startswith("briefing-") and files[0].endswith(".md"))
        self.assertIn("DAILY BRIEFING", out)
        self.assertTrue(all(c[-2:] == ["-t", "contoso"] for c in self.runner.calls))

    def test_briefing_format_only(self):
        rc, _, _ = self._run("briefing", "html")
        self.assertEqual(rc, 0)
        self.assertTrue(os.listdir(self.out_dir)[0].endswith(".html"))
        self.assertTrue(all("-t" not in c for c in self.runner.calls))

    def test_briefing_email_without_smtp_still_succeeds(self):
        rc, out, _ = self._run("briefing", "contoso", "html", "you@example.com")
        self.assertEqual(rc, 0)
        self.assertIn("Email not sent: Email not configured", out)

    def test_briefing_rejects_unknown_format(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["briefing", "contoso", "pdf"])
        self.assertEqual(ctx.exception.code, 2)

    def test_prep_next_needs_hours(self):
        rc, _, err = self._run("prep", "contoso", "next")
        self.assertEqual(rc, 2)
        self.assertIn("needs a number of hours", err)

    def test_prep_next_hours(self):
        self.runner.answer("What meetings do I have in the next 2 hours?", stdout="1. Standup\nTime: 9am")
        rc, out, _ = self._run("prep", "contoso", "next", "2")
        self.assertEqual(rc, 0)
        self.assertIn("MEETING PREPARATION BRIEF", out)
        self.assertFalse(os.path.exists(self.out_dir))

    def test_prep_timeframe_without_tenant_uses_env_tenant(self):
        with patch.dict(os.environ, {"WORKIQ_TENANT_ID": "contoso"}):
            rc, out, _ = self._run("prep", "tomorrow")
        self.assertEqual(rc, 0)
        self.assertIn("No meetings found for tomorrow", out)
        self.assertEqual(
            self.runner.calls[0],
            ["workiq", "ask", "-q", "What meetings do I have tomorrow? Include time, participants, and subject.",
             "-t", "contoso"],
        )

    def test_prep_next_hours_without_tenant_uses_env_tenant(self):
        with patch.dict(os.environ, {"WORKIQ_TENANT_ID": "contoso"}):
            rc, out, _ = self._run("prep", "next", "2")
        self.assertEqual(rc, 0)
        self.assertIn("No meetings found for next 2 hours", out)
        self.assertEqual(
            self.runner.calls[0],
            ["workiq", "ask", "-q", "What meetings do I have in the next 2 hours?", "-t", "contoso"],
        )

    def test_prep_next_without_tenant_needs_numeric_hours(self):
        rc, _, err = self._run("prep", "next", "soon")
        self.assertEqual(rc, 2)
        self.assertIn("unexpected argument 'soon'", err)

    def test_verify_exit_status(self):
        env_file = write_text(os.path.join(self.tmpdir, ".env"), "WORKIQ_TENANT_ID=contoso\n")
        rc, out, _ = self._run("verify", "--env-file", env_file)
        # default fake answers "" for version, so the CLI check passes
        self.assertEqual(rc, 0, out)
        self.runner.add(["workiq", "version"], returncode=127)
        rc, out, _ = self._run("verify", "--env-file", env_file)
        self.assertEqual(rc, 1)
        self.assertIn("Setup incomplete", out)

    def test_cache_stats_and_clear(self):
        self._run("ask", "a")
        self._run("ask", "b")
        rc, out, _ = self._run("cache", "stats", "--output", "json")
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out)["valid"], 2)
        rc, out, _ = self._run("cache", "clear")
        self.assertEqual(out.strip(), "Cache cleared (2 entries removed)")
        _, out, _ = self._run("cache", "clear")
        self.assertEqual(out.strip(), "Cache cleared (0 entries removed)")

    def test_no_cache_flag(self):
        self._run("ask", "a", "--no-cache")
        self._run("ask", "a", "--no-cache")
        self.assertEqual(len(self.runner.calls), 2)
        self.assertFalse(os.path.exists(os.path.join(self.tmpdir, "cache")))

    def test_context_expert(self):
        self.runner.answer("Who has written documents about OAuth?", stdout="Dana")
        rc, out, _ = self._run("context", "expert", "OAuth")
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), "Dana")

    def test_config_show_and_init(self):
        os.environ["SMTP_PASS"] = "secret"
        rc, out, _ = self._run("config", "show", "--output", "json")
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out)["smtp_pass"], "********")

        target = os.path.join(self.tmpdir, "new", "config.yaml")
        rc, _, _ = self._run("config", "init", "--path", target)
        self.assertEqual(rc, 0)
        with open(target, encoding="utf-8") as fh:
            content = fh.read()
        self.assertIn("cache_ttl: 3600", content)
        self.assertNotIn("secret", content)
        rc, _, err = self._run("config", "init", "--path", target)
        self.assertEqual(rc, 2)
        self.assertIn("--force", err)

    def test_bad_config_exits_three(self):
        write_yaml(["not", "a", "mapping"], dir=self.tmpdir)
        rc, _, err = self._run("ask", "q")
        self.assertEqual(rc, 3)
        self.assertIn("must be a mapping", err)

    def test_no_command_prints_help(self):
        rc, out, _ = self._run()
        self.assertEqual(rc, 2)
        self.assertIn("briefing", out)


class WorkIQEntryPointTests(unittest.TestCase):
    def test_help_via_module_invocation(self):
        proc = run([sys.executable, "-m", "workiq_assistant", "--help"], cwd=str(repo_root()))
        self.assertEqual(proc.returncode, 0, msg=proc.stderr)
        self.assertIn("Ask Work IQ about your calendar", proc.stdout)

    def test_help_via_executable_script(self):
        wrapper = bin_path("workiq-assistant")
        self.assertTrue(wrapper.exists(), "bin/workiq-assistant not found")
        proc = run([sys.executable, str(wrapper), "--help"], cwd=str(repo_root()))
        self.assertEqual(proc.returncode, 0, msg=proc.stderr)
        self.assertIn("Ask Work IQ about your calendar", proc.stdout)

    def test_missing_binary_end_to_end(self):
        env = dict(os.environ, WORKIQ_CLI="workiq-binary-that-does-not-exist")
        proc = run([sys.executable, str(bin_path("workiq-assistant")), "ask", "q", "--no-cache"], cwd=str(repo_root()), env=env)
        self.assertEqual(proc.returncode, 1)
        self.assertIn("Work IQ CLI not found", proc.stderr)


if __name__ == "__main__":
    unittest.main()
