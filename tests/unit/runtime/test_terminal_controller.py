"""Tests for the raw terminal session lifecycle."""

from __future__ import annotations

import termios
import unittest
from unittest import mock

from tabiew.runtime import terminal
from tabiew.runtime.terminal import TerminalController


def _controller(**kwargs) -> TerminalController:
    with mock.patch("tabiew.runtime.terminal.termios.tcgetattr", return_value=["saved"]):
        return TerminalController(stdin_fd=0, stdout_fd=1, **kwargs)


class TerminalControllerTests(unittest.TestCase):
    def test_enter_and_leave_write_session_sequences(self) -> None:
        controller = _controller()
        with mock.patch("tabiew.runtime.terminal.tty.setraw") as setraw, mock.patch(
            "tabiew.runtime.terminal.os.write"
        ) as write, mock.patch("tabiew.runtime.terminal.termios.tcsetattr") as tcsetattr:
            controller.enter()
            self.assertTrue(controller.active)
            controller.leave()

        setraw.assert_called_once_with(0, termios.TCSAFLUSH)
        self.assertEqual(
            write.call_args_list[0].args,
            (1, terminal.ALT_SCREEN_ON + terminal.CURSOR_HIDE + terminal.MOUSE_ON + terminal.CLEAR_SCREEN),
        )
        self.assertEqual(
            write.call_args_list[1].args,
            (1, terminal.MOUSE_OFF + terminal.CURSOR_SHOW + terminal.ALT_SCREEN_OFF),
        )
        tcsetattr.assert_called_once_with(0, termios.TCSADRAIN, ["saved"])
        self.assertFalse(controller.active)

    def test_enter_and_leave_are_idempotent(self) -> None:
        controller = _controller()
        with mock.patch("tabiew.runtime.terminal.tty.setraw") as setraw, mock.patch(
            "tabiew.runtime.terminal.os.write"
        ) as write, mock.patch("tabiew.runtime.terminal.termios.tcsetattr") as tcsetattr:
            controller.leave()
            controller.enter()
            controller.enter()
            controller.leave()
            controller.leave()

        setraw.assert_called_once()
        tcsetattr.assert_called_once()
        self.assertEqual(write.call_count, 2)

    def test_mouse_reporting_can_be_disabled(self) -> None:
        controller = _controller(mouse=False)
        with mock.patch("tabiew.runtime.terminal.tty.setraw"), mock.patch(
            "tabiew.runtime.terminal.os.write"
        ) as write, mock.patch("tabiew.runtime.terminal.termios.tcsetattr"):
            controller.enter()
            controller.leave()

        written = b"".join(call.args[1] for call in write.call_args_list)
        self.assertNotIn(terminal.MOUSE_ON, written)
        self.assertNotIn(terminal.MOUSE_OFF, written)

    def test_raw_mode_restores_tty_after_exception(self) -> None:
        controller = _controller()
        with mock.patch("tabiew.runtime.terminal.tty.setraw"), mock.patch(
            "tabiew.runtime.terminal.os.write"
        ), mock.patch("tabiew.runtime.terminal.termios.tcsetattr") as tcsetattr:
            with self.assertRaises(RuntimeError):
                with controller.raw_mode() as session:
                    self.assertIs(session, controller)
                    raise RuntimeError("boom")

        tcsetattr.assert_called_once_with(0, termios.TCSADRAIN, ["saved"])
        self.assertFalse(controller.active)

    def test_tty_is_restored_even_if_final_write_fails(self) -> None:
        controller = _controller()
        with mock.patch("tabiew.runtime.terminal.tty.setraw"), mock.patch(
            "tabiew.runtime.terminal.os.write", side_effect=[None, OSError("gone")]
        ), mock.patch("tabiew.runtime.terminal.termios.tcsetattr") as tcsetattr:
            controller.enter()
            with self.assertRaises(OSError):
                controller.leave()

        tcsetattr.assert_called_once()


if __name__ == "__main__":
    unittest.main()
