import unittest
from unittest.mock import Mock

from electron_webrtc_py.correlation import CorrelationRegistry
from electron_webrtc_py.logger import logger, LogLevel
from fakes import FakeDaemon


class TestCorrelationRegistry(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        logger.set_log_level(LogLevel.All)
        self.daemon = FakeDaemon()
        self.registry = CorrelationRegistry(self.daemon)

    def tearDown(self):
        logger.set_log_level(LogLevel.Disabled)

    def test_issue_returns_unique_tokens(self):
        tokens = {self.registry.issue() for _ in range(1000)}
        self.assertEqual(len(tokens), 1000)
        self.assertTrue(all(len(token) == 32 for token in tokens))

    def test_resolve_success_calls_on_success_once(self):
        on_success, on_failure = Mock(), Mock()
        token = self.registry.issue()
        self.registry.register(token, on_success, on_failure)
        self.assertEqual(self.registry.pending, 1)

        self.registry.resolve(token, {"result": {"type": "offer"}})
        self.registry.resolve(token, {"result": "again"})

        on_success.assert_called_once_with({"type": "offer"})
        on_failure.assert_not_called()
        self.assertEqual(self.registry.pending, 0)

    def test_resolve_failure_calls_on_failure(self):
        on_success, on_failure = Mock(), Mock()
        token = self.registry.issue()
        self.registry.register(token, on_success, on_failure)

        self.registry.resolve(token, {"error": {"name": "OperationError", "message": "boom"}})

        on_failure.assert_called_once_with({"name": "OperationError", "message": "boom"})
        on_success.assert_not_called()

    def test_resolve_unknown_token_is_ignored(self):
        self.registry.resolve("not-a-token", {"result": 1})
        self.assertEqual(self.registry.pending, 0)

    def test_completion_message_from_daemon_resolves(self):
        on_success, on_failure = Mock(), Mock()
        token = self.registry.issue()
        self.registry.register(token, on_success, on_failure)

        self.daemon.reply(token, result=None)
        # The subscription is one-shot.
        self.daemon.reply(token, result="late")

        on_success.assert_called_once_with(None)
        self.assertEqual(self.daemon.listeners(token), [])

    def test_direct_resolve_drops_daemon_subscription(self):
        on_success, on_failure = Mock(), Mock()
        token = self.registry.issue()
        self.registry.register(token, on_success, on_failure)

        self.registry.resolve(token, {"result": 1})

        self.assertEqual(self.daemon.listeners(token), [])
        self.daemon.reply(token, result="late")
        on_success.assert_called_once_with(1)

    def test_pending_operation_never_times_out(self):
        on_success, on_failure = Mock(), Mock()
        token = self.registry.issue()
        self.registry.register(token, on_success, on_failure)

        self.daemon.reply(self.registry.issue(), result="someone else")

        on_success.assert_not_called()
        self.assertEqual(self.registry.pending, 1)


if __name__ == '__main__':
    unittest.main()
