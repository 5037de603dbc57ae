"""Graceful shutdown on termination signals."""

from __future__ import annotations

import os
import signal
import sys
import threading

_lock = threading.Lock()
_installed = False


def shutdown_signals() -> tuple[signal.Signals, ...]:
    """Return the signals that request a shutdown on this platform."""
    if sys.platform == "win32":
        return (signal.SIGINT,)
    return (signal.SIGINT, signal.SIGTERM)


def setup_signal_handler() -> threading.Event:
    """Install shutdown handlers and return an event set on the first signal.

    A second signal terminates the process with exit code 1. The handlers
    may be installed only once per process.
    """
    global _installed
    with _lock:
        if _installed:
            raise RuntimeError("signal handler has already been set up")
        _installed = True

    stop = threading.Event()
    received = 0

    def _handle(signum, frame):
        nonlocal received
        received += 1
        if received == 1:
            stop.set()
        else:
            os._exit(1)

    for sig in shutdown_signals():
        signal.signal(sig, _handle)
    return stop