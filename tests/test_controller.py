# -*- coding: utf-8 -*-
"""
Tests for the Lifecycle Controller

Comprehensive tests for:
1. FIFO display in queue mode
2. Timer expiry and cancellation
3. At-most-once callbacks (dismiss / action / races)
4. Stack-mode eviction
5. dismiss_all and shutdown
6. Callback failures
"""

import asyncio
import pytest

from notiqueue.controller import NotificationController
from notiqueue.exceptions import ConfigurationError, ControllerClosedError
from notiqueue.models import (
    DisplayMode,
    NotificationDuration,
    NotificationState,
    Severity,
)

INDEFINITE = NotificationDuration.INDEFINITE


def messages(records):
    return [record.message for record in records]


# =============================================================================
# CONSTRUCTION
# =============================================================================

class TestConstruction:

    @pytest.mark.parametrize("capacity", [0, -3])
    def test_rejects_bad_capacity(self, capacity):
        """Should reject controller creation with no slots"""
        with pytest.raises(ConfigurationError):
            NotificationController(max_concurrent=capacity)

    def test_from_settings(self):
        from notiqueue.config import ToastSettings

        controller = NotificationController.from_settings(ToastSettings())

        assert controller.mode == DisplayMode.STACK
        assert controller.max_concurrent == 3
        assert controller.short_duration == 2.0
        assert controller.long_duration == 4.0


# =============================================================================
# QUEUE MODE
# =============================================================================

class TestQueueMode:
    """Tests for single-slot snackbar behaviour"""

    @pytest.mark.asyncio
    async def test_scenario_fifo_and_promotion(self, recorder):
        """show A, B, C -> A displayed, B and C queued; dismiss A -> B displayed"""
        async with NotificationController(max_concurrent=1) as controller:
            a = await controller.show("A", duration=INDEFINITE, on_dismiss=recorder.dismiss("A"))
            await controller.show("B", duration=INDEFINITE)
            await controller.show("C", duration=INDEFINITE)

            assert messages(controller.peek_current()) == ["A"]
            assert messages(controller.peek_pending()) == ["B", "C"]

            assert await controller.dismiss(a) is True

            assert messages(controller.peek_current()) == ["B"]
            assert messages(controller.peek_pending()) == ["C"]
            assert recorder.calls == [("dismiss", "A")]

    @pytest.mark.asyncio
    async def test_display_order_is_fifo(self):
        """Should display every record in the order it was shown"""
        async with NotificationController(max_concurrent=1) as controller:
            for i in range(6):
                await controller.show(f"N{i}", duration=INDEFINITE)

            displayed = []
            while controller.peek_current():
                current = controller.peek_current()[0]
                displayed.append(current.message)
                await controller.dismiss(current.id)

            assert displayed == [f"N{i}" for i in range(6)]

    @pytest.mark.asyncio
    async def test_no_empty_slot_while_pending(self):
        """Should reflect the successor immediately after retirement"""
        async with NotificationController(max_concurrent=1) as controller:
            a = await controller.show("A", duration=INDEFINITE)
            b = await controller.show("B", duration=INDEFINITE)

            seen = []
            controller.on_change(lambda snap: seen.append(([r["id"] for r in snap["current"]], len(snap["pending"]))))

            await controller.dismiss(a)

            assert controller.state_of(b) == NotificationState.DISPLAYED
            assert seen == [([b], 0)]

    @pytest.mark.asyncio
    async def test_action_defaults_to_indefinite(self):
        """Should keep records with an action until handled (queue mode)"""
        async with NotificationController(max_concurrent=1, short_duration=0.01) as controller:
            nid = await controller.show("Deleted", action_label="Undo")
            await asyncio.sleep(0.05)

            assert controller.state_of(nid) == NotificationState.DISPLAYED
            assert not controller.has_timer(nid)

    @pytest.mark.asyncio
    async def test_show_returns_before_callbacks(self, recorder):
        async with NotificationController(max_concurrent=1) as controller:
            nid = await controller.show("A", duration=0, on_dismiss=recorder.dismiss("A"))

            assert nid.startswith("NTF-")
            assert recorder.calls == []


# =============================================================================
# TIMERS
# =============================================================================

class TestTimers:
    """Tests for auto-dismiss"""

    @pytest.mark.asyncio
    async def test_short_duration_expires(self, recorder):
        """Should retire after the short duration and fire on_dismiss once"""
        async with NotificationController(short_duration=0.02) as controller:
            nid = await controller.show("A", duration="short", on_dismiss=recorder.dismiss("A"))

            await asyncio.sleep(0.1)

            assert recorder.calls == [("dismiss", "A")]
            assert controller.peek_current() == []
            assert controller.state_of(nid) == NotificationState.RETIRED
            assert controller.get_stats()["retired_by_cause"]["timeout"] == 1

    @pytest.mark.asyncio
    async def test_promoted_record_gets_timer(self, recorder):
        """Should arm the timer of a record promoted from the queue"""
        async with NotificationController(max_concurrent=1) as controller:
            a = await controller.show("A", duration=INDEFINITE)
            b = await controller.show("B", duration=0.02, on_dismiss=recorder.dismiss("B"))

            assert not controller.has_timer(b)
            await controller.dismiss(a)
            assert controller.has_timer(b)

            await asyncio.sleep(0.1)
            assert recorder.calls == [("dismiss", "B")]

    @pytest.mark.asyncio
    async def test_dismiss_cancels_timer(self, recorder):
        """Should not fire a duplicate retirement after manual dismiss"""
        async with NotificationController(short_duration=0.03) as controller:
            nid = await controller.show("A", duration="short", on_dismiss=recorder.dismiss("A"))

            await controller.dismiss(nid)
            assert not controller.has_timer(nid)
            await asyncio.sleep(0.1)

            assert recorder.count("dismiss", "A") == 1

    @pytest.mark.asyncio
    async def test_indefinite_never_expires(self):
        async with NotificationController(short_duration=0.01, long_duration=0.01) as controller:
            nid = await controller.show("A", duration=INDEFINITE)
            await asyncio.sleep(0.05)

            assert controller.state_of(nid) == NotificationState.DISPLAYED

    @pytest.mark.asyncio
    async def test_timer_chain_drains_queue(self, recorder):
        """Should display queued records one after another until empty"""
        async with NotificationController(max_concurrent=1) as controller:
            for name in "ABC":
                await controller.show(name, duration=0.01, on_dismiss=recorder.dismiss(name))

            await asyncio.sleep(0.2)

            assert recorder.names("dismiss") == ["A", "B", "C"]
            assert controller.peek_current() == []
            assert controller.peek_pending() == []


# =============================================================================
# DISMISS / ACTION
# =============================================================================

class TestRetirement:
    """Tests for at-most-once retirement"""

    @pytest.mark.asyncio
    async def test_idempotent_dismiss(self, recorder):
        async with NotificationController() as controller:
            nid = await controller.show("A", duration=INDEFINITE, on_dismiss=recorder.dismiss("A"))

            assert await controller.dismiss(nid) is True
            assert await controller.dismiss(nid) is False

            assert recorder.calls == [("dismiss", "A")]

    @pytest.mark.asyncio
    async def test_unknown_id_is_noop(self):
        async with NotificationController() as controller:
            assert await controller.dismiss("NTF-DOESNOTEXIST") is False
            assert await controller.perform_action("NTF-DOESNOTEXIST") is False
            assert controller.state_of("NTF-DOESNOTEXIST") is None

    @pytest.mark.asyncio
    async def test_action_then_dismiss_order(self, recorder):
        """Should fire on_action before on_dismiss; later dismiss is a no-op"""
        async with NotificationController() as controller:
            nid = await controller.show(
                "A",
                action_label="Undo",
                on_action=recorder.action("A"),
                on_dismiss=recorder.dismiss("A")
            )

            assert await controller.perform_action(nid) is True
            assert await controller.dismiss(nid) is False
            assert await controller.perform_action(nid) is False

            assert recorder.calls == [("action", "A"), ("dismiss", "A")]

    @pytest.mark.asyncio
    async def test_action_on_pending_is_noop(self, recorder):
        """Should not act on a record that is not displayed"""
        async with NotificationController(max_concurrent=1) as controller:
            await controller.show("A", duration=INDEFINITE)
            b = await controller.show("B", action_label="Go", on_action=recorder.action("B"))

            assert await controller.perform_action(b) is False
            assert controller.state_of(b) == NotificationState.PENDING
            assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_concurrent_triggers_single_winner(self, recorder):
        """Should resolve racing dismiss/action calls to exactly one retirement"""
        async with NotificationController() as controller:
            nid = await controller.show(
                "A",
                action_label="Undo",
                on_action=recorder.action("A"),
                on_dismiss=recorder.dismiss("A")
            )

            results = await asyncio.gather(
                controller.dismiss(nid),
                controller.perform_action(nid),
                controller.dismiss(nid),
                controller.perform_action(nid),
            )

            assert results.count(True) == 1
            assert recorder.count("dismiss", "A") == 1
            assert recorder.count("action", "A") <= 1

    @pytest.mark.asyncio
    async def test_timer_racing_manual_dismiss(self, recorder):
        async with NotificationController() as controller:
            nid = await controller.show("A", duration=0, on_dismiss=recorder.dismiss("A"))
            await controller.dismiss(nid)
            await asyncio.sleep(0.02)

            assert recorder.count("dismiss", "A") == 1

    @pytest.mark.asyncio
    async def test_manual_dismiss_respects_dismissible(self, recorder):
        """Should ignore user gestures on non-dismissible records"""
        async with NotificationController() as controller:
            nid = await controller.show(
                "A", duration=INDEFINITE, dismissible=False, on_dismiss=recorder.dismiss("A")
            )

            assert await controller.dismiss(nid, manual=True) is False
            assert controller.state_of(nid) == NotificationState.DISPLAYED

            assert await controller.dismiss(nid) is True
            assert recorder.calls == [("dismiss", "A")]

    @pytest.mark.asyncio
    async def test_dismiss_current_and_action_current(self, recorder):
        async with NotificationController(max_concurrent=1) as controller:
            await controller.show("A", duration=INDEFINITE, on_dismiss=recorder.dismiss("A"))
            await controller.show("B", action_label="Retry", on_action=recorder.action("B"))

            assert await controller.dismiss_current() is True
            assert messages(controller.peek_current()) == ["B"]
            assert await controller.perform_action_current() is True
            assert await controller.dismiss_current() is False

            assert recorder.calls == [("dismiss", "A"), ("action", "B")]

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self):
        fired = []

        async def on_dismiss():
            await asyncio.sleep(0)
            fired.append("dismissed")

        async with NotificationController() as controller:
            nid = await controller.show("A", duration=INDEFINITE, on_dismiss=on_dismiss)
            await controller.dismiss(nid)

        assert fired == ["dismissed"]

    @pytest.mark.asyncio
    async def test_callback_can_reenter_controller(self):
        """Should allow callbacks to show follow-up notifications"""
        async with NotificationController(max_concurrent=1) as controller:

            async def follow_up():
                await controller.show("Restored", duration=INDEFINITE)

            nid = await controller.show("Deleted", action_label="Undo", on_action=follow_up)
            await controller.perform_action(nid)

            assert messages(controller.peek_current()) == ["Restored"]


# =============================================================================
# STACK MODE
# =============================================================================

class TestStackMode:
    """Tests for toast-style eviction"""

    @pytest.mark.asyncio
    async def test_fourth_toast_evicts_first(self, recorder):
        async with NotificationController(max_concurrent=3, mode=DisplayMode.STACK) as controller:
            ids = []
            for name in "ABCD":
                ids.append(await controller.show(name, duration=INDEFINITE, on_dismiss=recorder.dismiss(name)))

            assert recorder.calls == [("dismiss", "A")]
            assert messages(controller.peek_current()) == ["B", "C", "D"]
            assert controller.peek_pending() == []
            assert controller.state_of(ids[0]) == NotificationState.RETIRED
            assert controller.get_stats()["total_evicted"] == 1

    @pytest.mark.asyncio
    async def test_eviction_cancels_timer(self, recorder):
        async with NotificationController(max_concurrent=1, mode=DisplayMode.STACK) as controller:
            a = await controller.show("A", duration=0.03, on_dismiss=recorder.dismiss("A"))
            await controller.show("B", duration=INDEFINITE)

            assert not controller.has_timer(a)
            await asyncio.sleep(0.08)
            assert recorder.count("dismiss", "A") == 1

    @pytest.mark.asyncio
    async def test_default_duration_is_short_with_action(self):
        async with NotificationController(max_concurrent=3, mode=DisplayMode.STACK) as controller:
            nid = await controller.show("Saved", action_label="View")
            assert controller.peek_current()[0].duration == NotificationDuration.SHORT
            assert controller.has_timer(nid)


# =============================================================================
# DISMISS ALL / SHUTDOWN
# =============================================================================

class TestDismissAll:

    @pytest.mark.asyncio
    async def test_pending_discarded_silently(self, recorder):
        """current=[A,B], pending=[C] -> A and B dismissed, C dropped without callbacks"""
        async with NotificationController(max_concurrent=2) as controller:
            for name in "ABC":
                await controller.show(name, duration=INDEFINITE, on_dismiss=recorder.dismiss(name))

            count = await controller.dismiss_all()

            assert count == 2
            assert recorder.names("dismiss") == ["A", "B"]
            assert controller.peek_current() == []
            assert controller.peek_pending() == []

    @pytest.mark.asyncio
    async def test_pending_notified_when_requested(self, recorder):
        async with NotificationController(max_concurrent=2) as controller:
            for name in "ABC":
                await controller.show(name, duration=INDEFINITE, on_dismiss=recorder.dismiss(name))

            await controller.dismiss_all(notify_pending=True)

            assert recorder.names("dismiss") == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_dismiss_all_cancels_timers(self, recorder):
        async with NotificationController(max_concurrent=2) as controller:
            a = await controller.show("A", duration=0.03, on_dismiss=recorder.dismiss("A"))
            await controller.dismiss_all()

            assert not controller.has_timer(a)
            await asyncio.sleep(0.08)
            assert recorder.count("dismiss", "A") == 1

    @pytest.mark.asyncio
    async def test_no_promotion_after_dismiss_all(self):
        async with NotificationController(max_concurrent=1) as controller:
            await controller.show("A", duration=INDEFINITE)
            await controller.show("B", duration=INDEFINITE)
            await controller.dismiss_all()

            nid = await controller.show("C", duration=INDEFINITE)
            assert [r.id for r in controller.peek_current()] == [nid]

    @pytest.mark.asyncio
    async def test_cancelled_dismiss_all_still_retires_everything(self, recorder):
        """Cancelling the caller mid-callback must not skip the remaining on_dismiss"""
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_dismiss():
            started.set()
            await release.wait()
            recorder.calls.append(("dismiss", "A"))

        async with NotificationController(max_concurrent=2, mode=DisplayMode.STACK) as controller:
            a = await controller.show("A", duration=INDEFINITE, on_dismiss=slow_dismiss)
            b = await controller.show("B", duration=INDEFINITE, on_dismiss=recorder.dismiss("B"))

            task = asyncio.create_task(controller.dismiss_all())
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

            release.set()
            for _ in range(10):
                await asyncio.sleep(0.01)

            assert recorder.names("dismiss") == ["A", "B"]
            assert controller.peek_current() == []
            assert controller.state_of(a) == NotificationState.RETIRED
            assert controller.state_of(b) == NotificationState.RETIRED


class TestShutdown:

    @pytest.mark.asyncio
    async def test_shutdown_cancels_timers_and_closes(self, recorder):
        controller = NotificationController(max_concurrent=2)
        a = await controller.show("A", duration=10, on_dismiss=recorder.dismiss("A"))

        await controller.shutdown()

        assert controller.is_closed
        assert not controller.has_timer(a)
        assert controller.get_stats()["active_timers"] == 0
        assert recorder.calls == [("dismiss", "A")]

        with pytest.raises(ControllerClosedError):
            await controller.show("late")

    @pytest.mark.asyncio
    async def test_operations_after_shutdown_are_noops(self):
        controller = NotificationController()
        nid = await controller.show("A", duration=INDEFINITE)
        await controller.shutdown()

        assert await controller.dismiss(nid) is False
        assert await controller.dismiss_all() == 0
        await controller.shutdown()


# =============================================================================
# CALLBACK FAILURES
# =============================================================================

class TestCallbackErrors:
    """Callbacks raising must not corrupt the queue"""

    @pytest.mark.asyncio
    async def test_failing_dismiss_still_promotes(self):
        def boom():
            raise RuntimeError("callback failed")

        errors = []
        async with NotificationController(max_concurrent=1) as controller:
            controller.on_callback_error(lambda nid, exc: errors.append((nid, str(exc))))
            a = await controller.show("A", duration=INDEFINITE, on_dismiss=boom)
            await controller.show("B", duration=INDEFINITE)

            assert await controller.dismiss(a) is True

            assert messages(controller.peek_current()) == ["B"]
            assert controller.state_of(a) == NotificationState.RETIRED
            assert errors == [(a, "callback failed")]
            assert controller.get_stats()["callback_errors"] == 1

    @pytest.mark.asyncio
    async def test_failing_action_still_dismisses(self, recorder):
        def boom():
            raise ValueError("nope")

        async with NotificationController() as controller:
            nid = await controller.show("A", action_label="Go", on_action=boom, on_dismiss=recorder.dismiss("A"))
            await controller.perform_action(nid)

            assert recorder.calls == [("dismiss", "A")]

    @pytest.mark.asyncio
    async def test_failing_listener_is_logged(self):
        async with NotificationController() as controller:
            controller.on_change(lambda snap: 1 / 0)
            nid = await controller.show("A", duration=INDEFINITE)
            assert controller.state_of(nid) == NotificationState.DISPLAYED


# =============================================================================
# SHORTCUTS / STATS
# =============================================================================

class TestShortcuts:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,severity,duration", [
        ("show_success", Severity.SUCCESS, NotificationDuration.SHORT),
        ("show_info", Severity.INFO, NotificationDuration.SHORT),
        ("show_warning", Severity.WARNING, NotificationDuration.LONG),
        ("show_error", Severity.ERROR, NotificationDuration.LONG),
    ])
    async def test_severity_shortcuts(self, method, severity, duration):
        async with NotificationController() as controller:
            await getattr(controller, method)("msg")
            record = controller.peek_current()[0]

            assert record.severity == severity
            assert record.duration == duration

    @pytest.mark.asyncio
    async def test_error_from_exception(self):
        async with NotificationController(max_concurrent=3) as controller:
            await controller.show_error_from_exception(ValueError("disk full"))
            await controller.show_error_from_exception(ValueError("ignored"), message="Upload failed")
            await controller.show_error_from_exception(ValueError())

            assert messages(controller.peek_current()) == ["disk full", "Upload failed", "An error occurred"]

    @pytest.mark.asyncio
    async def test_error_from_exception_keeps_empty_message(self):
        """An explicit empty message is used as-is"""
        async with NotificationController() as controller:
            await controller.show_error_from_exception(ValueError("disk full"), message="")

            assert messages(controller.peek_current()) == [""]

    @pytest.mark.asyncio
    async def test_stats(self):
        async with NotificationController(max_concurrent=1) as controller:
            a = await controller.show("A", duration=INDEFINITE)
            await controller.show("B", duration=INDEFINITE)
            await controller.dismiss(a)

            stats = controller.get_stats()

            assert stats["total_shown"] == 2
            assert stats["total_queued"] == 1
            assert stats["total_promoted"] == 1
            assert stats["total_displayed"] == 2
            assert stats["retired_by_cause"]["dismissed"] == 1
            assert stats["current_count"] == 1
