"""Request Context — tests for per-request state and teardown.

Tests cover:
    - Success-by-default status
    - fail() sets status and message together
    - clear() drops the transport and resets state, and is idempotent
"""

from jsoncommand.core.request_context import DispatchState, RequestContext

from tests.fakes import FakeTransport


def test_new_context_defaults_to_success():
    ctx = RequestContext()
    assert ctx.status is True
    assert ctx.fail_message is None
    assert ctx.state == DispatchState.STARTED


def test_fail_sets_status_and_message_together():
    ctx = RequestContext()
    ctx.fail("error: quota exceeded")
    assert ctx.status is False
    assert ctx.fail_message == "error: quota exceeded"


def test_clear_drops_transport_and_resets():
    ctx = RequestContext(transport=FakeTransport(), payload="[1]")
    ctx.fail("bad")
    ctx.advance(DispatchState.RESPONDING)
    ctx.clear()
    assert ctx.transport is None
    assert ctx.payload == ""
    assert ctx.status is True
    assert ctx.fail_message is None
    assert ctx.state == DispatchState.DONE


def test_clear_is_idempotent():
    ctx = RequestContext(transport=FakeTransport())
    ctx.clear()
    ctx.clear()
    assert ctx.state == DispatchState.DONE


def test_contexts_do_not_share_state():
    a, b = RequestContext(), RequestContext()
    a.fail("a failed")
    assert b.status is True
    assert b.fail_message is None
