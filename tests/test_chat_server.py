#!/usr/bin/env python3
"""
Tests for server/chat/chat_server.py.

The first cases drive sessions with scripted connections; the end-to-end
cases start a real server on a loopback port and talk to it over TCP.
"""

import socket
import threading
import time
import unittest
from unittest.mock import patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.constants import Prompts
from common.protocol_definitions import hash_password
from server.chat.chat_server import ChatServer, LoopExit
from server.chat.registry import Registry
from server.chat.session import Session
from server.storage import InMemoryCredentialStore, InMemoryTranscriptSink
from server.utils.config import ServerConfig
from tests.fakes import ScriptedConnection, authenticated_session, wait_for


class TestMessageLoop(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryCredentialStore()
        self.transcript = InMemoryTranscriptSink()
        self.server = ChatServer(ServerConfig(host='127.0.0.1', port=0), self.store, self.transcript)
        self.registry = self.server.registry
        self.listener_conn = ScriptedConnection()
        self.registry.add(authenticated_session("bob", self.listener_conn))

    def test_exit_any_case_ends_loop(self):
        for command in ("exit", "EXIT", "Exit", "eXiT"):
            with self.subTest(command=command):
                session = authenticated_session("alice", ScriptedConnection([command, "after"]))
                self.assertIs(self.server.run_message_loop(session), LoopExit.QUIT)
                self.assertEqual(session.connection.lines, ["after"])

    def test_lines_are_broadcast_until_eof(self):
        session = authenticated_session("alice", ScriptedConnection(["one", "two"]))
        self.registry.add(session)
        self.assertIs(self.server.run_message_loop(session), LoopExit.EOF)
        self.assertEqual(self.listener_conn.sent, ["alice: one", "alice: two"])
        self.assertEqual([e.message for e in self.transcript.entries()], ["one", "two"])

    def test_read_error_is_reported_separately(self):
        session = authenticated_session("alice", ScriptedConnection(read_error=ConnectionResetError("reset")))
        self.assertIs(self.server.run_message_loop(session), LoopExit.ERROR)

    def test_padded_exit_is_broadcast_not_quit(self):
        session = authenticated_session("alice", ScriptedConnection(["exit ", " EXIT", "hi"]))
        self.assertIs(self.server.run_message_loop(session), LoopExit.EOF)
        self.assertEqual(self.listener_conn.sent, ["alice: exit ", "alice:  EXIT", "alice: hi"])

    def test_exit_word_inside_a_message_is_broadcast(self):
        session = authenticated_session("alice", ScriptedConnection(["exit now", "exit"]))
        self.assertIs(self.server.run_message_loop(session), LoopExit.QUIT)
        self.assertEqual(self.listener_conn.sent, ["alice: exit now"])


class TestServeSession(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryCredentialStore()
        self.store.register("alice", hash_password("pw1"))
        self.server = ChatServer(ServerConfig(host='127.0.0.1', port=0), self.store, InMemoryTranscriptSink())

    def test_quit_removes_exactly_once_and_closes(self):
        conn = ScriptedConnection(["login", "alice", "pw1", "hello", "exit"])
        session = Session(conn)
        with patch.object(self.server.registry, 'remove', wraps=self.server.registry.remove) as remove:
            outcome = self.server.serve_session(session)
        self.assertIs(outcome, LoopExit.QUIT)
        remove.assert_called_once_with(session)
        self.assertNotIn(session, self.server.registry)
        self.assertEqual(conn.close_count, 1)
        self.assertEqual(conn.sent[-1], Prompts.CHAT_INSTRUCTIONS)

    def test_failed_login_never_registers(self):
        conn = ScriptedConnection(["login", "alice", "wrong"])
        session = Session(conn)
        with patch.object(self.server.registry, 'add', wraps=self.server.registry.add) as add:
            outcome = self.server.serve_session(session)
        self.assertIsNone(outcome)
        add.assert_not_called()
        self.assertEqual(conn.sent[-1], Prompts.LOGIN_FAILED)
        self.assertTrue(conn.closed)

    def test_rejected_session_receives_no_broadcasts(self):
        bob_conn = ScriptedConnection()
        bob = authenticated_session("bob", bob_conn)
        self.server.registry.add(bob)

        rejected_conn = ScriptedConnection(["nonsense"])
        self.server.serve_session(Session(rejected_conn))
        self.server.registry.broadcast(bob, "anyone there?")
        self.assertEqual(rejected_conn.sent, [Prompts.ACTION, Prompts.INVALID_ACTION])

    def test_unexpected_error_still_cleans_up(self):
        registry = Registry()
        server = ChatServer(ServerConfig(host='127.0.0.1', port=0), self.store, registry=registry)
        conn = ScriptedConnection(["login", "alice", "pw1", "boom"])
        session = Session(conn)
        with patch.object(registry, 'broadcast', side_effect=RuntimeError("boom")):
            outcome = server.serve_session(session)
        self.assertIs(outcome, LoopExit.ERROR)
        self.assertNotIn(session, registry)
        self.assertEqual(conn.close_count, 1)


class LineClient:
    """Minimal blocking line client for end-to-end tests."""

    def __init__(self, address):
        self.sock = socket.create_connection(address, timeout=5)
        self.rfile = self.sock.makefile('rb')

    def send(self, text):
        self.sock.sendall((text + "\n").encode('utf-8'))

    def recv(self):
        raw = self.rfile.readline()
        if not raw:
            return None
        return raw.decode('utf-8').rstrip('\r\n')

    def expect(self, testcase, expected):
        testcase.assertEqual(self.recv(), expected)

    def authenticate(self, testcase, action, username, password, expected_reply):
        self.expect(testcase, Prompts.ACTION)
        self.send(action)
        self.expect(testcase, Prompts.USERNAME)
        self.send(username)
        self.expect(testcase, Prompts.PASSWORD)
        self.send(password)
        self.expect(testcase, expected_reply)

    def close(self):
        self.rfile.close()
        self.sock.close()


class TestEndToEnd(unittest.TestCase):
    """Real sockets against a server bound to an ephemeral loopback port."""

    def setUp(self):
        self.store = InMemoryCredentialStore()
        self.transcript = InMemoryTranscriptSink()
        self.server = ChatServer(ServerConfig(host='127.0.0.1', port=0), self.store, self.transcript)
        self.server.start()
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self.clients = []

    def tearDown(self):
        for client in self.clients:
            client.close()
        self.server.shutdown()
        self.thread.join(timeout=5)

    def connect(self):
        client = LineClient(self.server.address)
        self.clients.append(client)
        return client

    def register(self, username, password):
        client = self.connect()
        client.authenticate(self, "register", username, password, Prompts.REGISTER_OK)
        client.expect(self, Prompts.CHAT_INSTRUCTIONS)
        return client

    def test_alice_and_bob_chat(self):
        alice = self.register("alice", "pw1")
        bob = self.register("bob", "pw2")
        self.assertTrue(wait_for(lambda: len(self.server.registry) == 2))

        alice.send("hello")
        bob.expect(self, "alice: hello")

        entries = self.transcript.entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual((entries[0].sender, entries[0].message), ("alice", "hello"))

        # Alice's own line is never echoed: the next thing she sees is the close
        alice.send("exit")
        self.assertIsNone(alice.recv())
        self.assertTrue(wait_for(lambda: self.server.registry.usernames() == ["bob"]))

    def test_wrong_password_is_disconnected_without_joining(self):
        self.register("alice", "pw1")
        self.assertTrue(wait_for(lambda: len(self.server.registry) == 1))

        intruder = self.connect()
        intruder.authenticate(self, "login", "alice", "wrong",
                              "Login failed: Invalid username or password.")
        self.assertIsNone(intruder.recv())
        self.assertEqual(self.server.registry.usernames(), ["alice"])

    def test_login_after_register(self):
        first = self.register("carol", "pw3")
        first.send("exit")
        self.assertIsNone(first.recv())

        again = self.connect()
        again.authenticate(self, "LOGIN", "carol", "pw3", "Login successful! Welcome back, carol.")
        again.expect(self, Prompts.CHAT_INSTRUCTIONS)

    def test_duplicate_registration_rejected(self):
        self.register("dave", "pw4")
        other = self.connect()
        other.authenticate(self, "register", "dave", "nope", Prompts.REGISTER_FAILED)
        self.assertIsNone(other.recv())
        self.assertTrue(self.store.verify("dave", hash_password("pw4")))

    def test_dropped_connection_is_removed(self):
        erin = self.register("erin", "pw5")
        self.assertTrue(wait_for(lambda: len(self.server.registry) == 1))
        erin.close()
        self.clients.remove(erin)
        self.assertTrue(wait_for(lambda: len(self.server.registry) == 0))

    def test_stalled_handshake_does_not_block_others(self):
        staller = self.connect()
        staller.expect(self, Prompts.ACTION)
        # staller never answers; a second client still gets through
        self.register("frank", "pw6")


class TestShutdown(unittest.TestCase):

    def setUp(self):
        self.server = ChatServer(ServerConfig(host='127.0.0.1', port=0),
                                 InMemoryCredentialStore(), InMemoryTranscriptSink())
        self.server.start()
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def test_disconnects_sessions_still_in_handshake(self):
        staller = LineClient(self.server.address)
        try:
            staller.expect(self, Prompts.ACTION)
            self.assertTrue(wait_for(lambda: len(self.server.sessions) == 1))
            self.assertEqual(len(self.server.registry), 0)

            started = time.monotonic()
            self.server.shutdown()
            self.assertIsNone(staller.recv())
            self.assertLess(time.monotonic() - started, 2)
            self.assertTrue(wait_for(lambda: len(self.server.sessions) == 0))
        finally:
            staller.close()
            self.thread.join(timeout=5)

    def test_shutdown_twice_is_harmless(self):
        self.server.shutdown()
        self.server.shutdown()
        self.thread.join(timeout=5)
        self.assertFalse(self.thread.is_alive())


class TestStartup(unittest.TestCase):

    def test_bind_failure_raises(self):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(('127.0.0.1', 0))
        blocker.listen()
        try:
            port = blocker.getsockname()[1]
            server = ChatServer(ServerConfig(host='127.0.0.1', port=port), InMemoryCredentialStore())
            with self.assertRaises(OSError):
                server.start()
        finally:
            blocker.close()


if __name__ == '__main__':
    unittest.main()
