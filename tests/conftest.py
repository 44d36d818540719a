# -*- coding: utf-8 -*-
"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for the notification controller test suite.
"""

import os
import sys
import pytest
from pathlib import Path
from typing import List, Tuple

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Set test environment
os.environ["TESTING"] = "1"

from notiqueue import manager
from notiqueue.config import reload_settings
from notiqueue.models import DisplayMode, NotificationRecord, build_record


class CallbackRecorder:
    """Records on_action/on_dismiss invocations in call order"""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []

    def action(self, name: str):
        return lambda: self.calls.append(("action", name))

    def dismiss(self, name: str):
        return lambda: self.calls.append(("dismiss", name))

    def count(self, kind: str, name: str) -> int:
        return self.calls.count((kind, name))

    def names(self, kind: str) -> List[str]:
        return [name for call_kind, name in self.calls if call_kind == kind]


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def recorder():
    """Fresh callback recorder"""
    return CallbackRecorder()


@pytest.fixture
def make_record(recorder):
    """Factory for records wired to the recorder"""

    def _make(name: str, **kwargs) -> NotificationRecord:
        kwargs.setdefault("on_action", recorder.action(name))
        kwargs.setdefault("on_dismiss", recorder.dismiss(name))
        return build_record(name, **kwargs)

    return _make


@pytest.fixture
def queue_mode():
    return DisplayMode.QUEUE


@pytest.fixture
def stack_mode():
    return DisplayMode.STACK


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Isolate the global manager and cached settings between tests"""
    for key in list(os.environ):
        if key.startswith("NOTIFICATION_"):
            monkeypatch.delenv(key, raising=False)
    manager.clear()
    reload_settings()
    yield
    manager.clear()
    reload_settings()
