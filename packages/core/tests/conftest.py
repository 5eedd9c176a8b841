"""Shared test doubles for the core package."""

from __future__ import annotations

import pytest


class FakeRunner:
    """Records every spawn request instead of touching the OS."""

    def __init__(self, probes=None, outputs=None, run_codes=None, run_error=None):
        self.probes = probes or {}
        self.outputs = outputs if outputs is not None else {"node": "v22.3.0\n"}
        self.run_codes = run_codes or {}
        self.run_error = run_error
        self.calls = []

    def probe(self, args):
        self.calls.append(("probe", list(args)))
        return self.probes.get(args[0], True)

    def capture(self, args):
        self.calls.append(("capture", list(args)))
        return self.outputs.get(args[0])

    def run(self, args, cwd=None, env=None, timeout=None):
        self.calls.append(("run", list(args), {"cwd": cwd, "env": env, "timeout": timeout}))
        if self.run_error is not None:
            raise self.run_error
        return self.run_codes.get(args[0], 0)

    def runs(self):
        return [c for c in self.calls if c[0] == "run"]


@pytest.fixture
def make_runner():
    return FakeRunner
