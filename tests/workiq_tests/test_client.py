import unittest

from core.constants import MAX_OUTPUT_BYTES
from workiq_assistant.client import WorkIQClient, escape_question
from workiq_assistant.errors import (
    ExternalToolError,
    ExternalToolMissing,
    OutputTooLargeError,
    QueryTimeoutError,
)
from workiq_assistant.runner import CommandResult
from tests.fakes import ConcurrencyRunner, FakeRunner, ok
from tests.fixtures import Clock, TempDirMixin, make_client


class EscapeQuestionTests(unittest.TestCase):
    def test_escapes_both_quote_kinds(self):
        self.assertEqual(escape_question('say "hi" it\'s'), 'say \\"hi\\" it\\\'s')
        self.assertEqual(escape_question("plain"), "plain")


class BuildCommandTests(unittest.TestCase):
    def test_argv_without_and_with_tenant(self):
        client = WorkIQClient(runner=FakeRunner())
        self.assertEqual(client.build_command("q"), ["workiq", "ask", "-q", "q"])
        self.assertEqual(client.build_command("q", "contoso"), ["workiq", "ask", "-q", "q", "-t", "contoso"])

    def test_question_is_one_argument_even_with_quotes(self):
        client = WorkIQClient(runner=FakeRunner())
        question = 'What did "Sam" say; rm -rf /?'
        self.assertEqual(client.build_command(question)[3], question)
        self.assertIn('\\"Sam\\"', client.command_line(question))


class AskTests(TempDirMixin, unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.runner = FakeRunner()
        self.clock = Clock()
        self.client = make_client(self.runner, self.tmpdir, clock=self.clock)

    def test_answer_is_trimmed_and_cached(self):
        self.runner.answer("q", stdout="  1. Standup\n\n")
        self.assertEqual(self.client.ask("q"), "1. Standup")
        self.assertEqual(self.client.cache.get("q"), "1. Standup")

    def test_cache_hit_skips_the_runner(self):
        self.runner.answer("q", stdout="first")
        self.client.ask("q")
        self.runner.answer("q", stdout="second")
        self.assertEqual(self.client.ask("q"), "first")
        self.assertEqual(len(self.runner.calls), 1)

    def test_expired_entry_runs_again(self):
        self.runner.answer("q", stdout="first")
        self.client.ask("q")
        self.clock.advance(3600)
        self.runner.answer("q", stdout="second")
        self.assertEqual(self.client.ask("q"), "second")

    def test_use_cache_false_bypasses_read_and_write(self):
        self.runner.answer("q", stdout="live")
        self.client.ask("q", use_cache=False)
        self.assertIsNone(self.client.cache.get("q"))
        self.client.ask("q", use_cache=False)
        self.assertEqual(len(self.runner.calls), 2)

    def test_cache_disabled_in_settings(self):
        client = make_client(self.runner, self.tmpdir, cache_enabled=False)
        self.runner.answer("q", stdout="live")
        client.ask("q")
        client.ask("q")
        self.assertEqual(len(self.runner.calls), 2)

    def test_default_tenant_and_timeout(self):
        client = make_client(self.runner, self.tmpdir, tenant_id="contoso", timeout_ms=5000)
        self.runner.add(["workiq", "ask", "-q", "q", "-t", "contoso"], stdout="tenant answer")
        self.assertEqual(client.ask("q"), "tenant answer")
        self.assertEqual(self.runner.timeouts[-1], 5.0)
        self.assertIsNone(client.cache.get("q"))
        self.assertEqual(client.cache.get("q", "contoso"), "tenant answer")

    def test_missing_binary(self):
        with self.assertRaises(ExternalToolMissing) as ctx:
            self.client.ask("q")
        self.assertEqual(int(ctx.exception.code), 1)
        self.assertIn("npm install", ctx.exception.hint)

    def test_nonzero_exit(self):
        self.runner.answer("q", stderr="tenant not found", returncode=2)
        with self.assertRaises(ExternalToolError) as ctx:
            self.client.ask("q")
        self.assertEqual(ctx.exception.returncode, 2)
        self.assertIn("tenant not found", ctx.exception.message)
        self.assertIsNone(self.client.cache.get("q"))

    def test_timeout(self):
        self.runner.time_out("q")
        with self.assertRaises(QueryTimeoutError) as ctx:
            self.client.ask("q", timeout_ms=250)
        self.assertEqual(ctx.exception.timeout_ms, 250)
        self.assertEqual(self.runner.timeouts[-1], 0.25)

    def test_output_cap(self):
        self.runner.answer("big", stdout="x" * (MAX_OUTPUT_BYTES + 1))
        with self.assertRaises(OutputTooLargeError):
            self.client.ask("big")
        self.runner.answer("edge", stdout="x" * MAX_OUTPUT_BYTES)
        self.assertEqual(len(self.client.ask("edge")), MAX_OUTPUT_BYTES)

    def test_truncated_result_is_too_large_and_not_cached(self):
        self.runner.default = CommandResult(stdout="x" * 10, stderr="", returncode=-9, truncated=True)
        with self.assertRaises(OutputTooLargeError):
            self.client.ask("runaway")
        self.assertIsNone(self.client.cache.get("runaway", None))

    def test_version(self):
        self.runner.add(["workiq", "version"], stdout="workiq 1.4.2\nbuild abc\n")
        self.assertEqual(self.client.version(), "workiq 1.4.2")
        with self.assertRaises(ExternalToolMissing):
            make_client(FakeRunner(), self.tmpdir).version()


class BatchTests(TempDirMixin, unittest.TestCase):
    def test_try_ask_and_ask_or(self):
        runner = FakeRunner(default=ok(""))
        runner.answer("bad", stderr="boom", returncode=1)
        runner.answer("good", stdout="yes")
        client = make_client(runner, self.tmpdir)
        self.assertEqual(client.try_ask("good").payload, "yes")
        env = client.try_ask("bad")
        self.assertFalse(env.ok())
        self.assertEqual(env.diagnostics["question"], "bad")
        self.assertEqual(client.ask_or("bad", "fallback"), "fallback")
        # Empty answers also take the fallback
        self.assertEqual(client.ask_or("empty", "fallback"), "fallback")

    def test_try_ask_propagates_missing_binary(self):
        client = make_client(FakeRunner(), self.tmpdir)
        with self.assertRaises(ExternalToolMissing):
            client.try_ask("q")

    def test_ask_many_sequential_keeps_order(self):
        runner = FakeRunner(default=ok(""))
        for q in ("a", "b", "c"):
            runner.answer(q, stdout=q.upper())
        runner.answer("b", returncode=3, stderr="nope")
        client = make_client(runner, self.tmpdir)
        envs = client.ask_many(["a", "b", "c"])
        self.assertEqual([e.ok() for e in envs], [True, False, True])
        self.assertEqual(envs[0].payload, "A")
        self.assertEqual(envs[2].payload, "C")
        self.assertEqual(runner.questions, ["a", "b", "c"])

    def test_ask_many_concurrent_respects_limit_and_order(self):
        runner = ConcurrencyRunner(default=ok(""))
        questions = [f"q{i}" for i in range(6)]
        for q in questions:
            runner.answer(q, stdout=f"answer {q}")
        client = make_client(runner, self.tmpdir)
        envs = client.ask_many(questions, concurrency=2)
        self.assertEqual([e.payload for e in envs], [f"answer {q}" for q in questions])
        self.assertEqual(runner.max_in_flight, 2)

    def test_ask_many_uses_settings_concurrency(self):
        runner = ConcurrencyRunner(default=ok("x"))
        client = make_client(runner, self.tmpdir, concurrency=3)
        client.ask_many(["a", "b", "c", "d"])
        self.assertEqual(runner.max_in_flight, 3)

    def test_ask_many_concurrent_missing_binary_aborts(self):
        client = make_client(ConcurrencyRunner(), self.tmpdir)
        with self.assertRaises(ExternalToolMissing):
            client.ask_many(["a", "b"], concurrency=2)

    def test_cache_helpers(self):
        runner = FakeRunner(default=ok("x"))
        client = make_client(runner, self.tmpdir)
        client.ask("a")
        client.ask("b")
        self.assertEqual(client.cache_stats().valid, 2)
        self.assertEqual(client.clear_cache(), 2)
        self.assertEqual(client.clear_cache(), 0)


if __name__ == "__main__":
    unittest.main()
