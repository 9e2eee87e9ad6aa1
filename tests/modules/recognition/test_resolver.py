import pytest

from sessionflow.core.errors import CaptureError
from sessionflow.modules.recognition.types import Point


def test_locate_reuses_frame_within_ttl_and_recaptures_after(resolver, backend, clock):
    backend.show("Other user", 320, 480)

    first = resolver.locate("Other user")
    clock.advance(0.5)
    second = resolver.locate("Other user")

    assert first.found and second.found
    assert backend.captures == 1
    assert second.frame_reused is True

    clock.advance(2.0)
    third = resolver.locate("Other user")

    assert third.found
    assert third.frame_reused is False
    assert backend.captures == 2
    # 旧帧在替换前被释放
    assert backend.released == [1]


def test_cached_frame_does_not_see_later_screen_changes(resolver, backend, clock):
    resolver.locate("Continue")
    backend.show("Continue")
    clock.advance(0.5)

    stale = resolver.locate("Continue")
    fresh = resolver.locate("Continue", use_cache=False)

    assert stale.found is False
    assert fresh.found is True


def test_uncached_query_captures_fresh_and_keeps_cache(resolver, backend, clock):
    backend.show("Sign in options")
    resolver.locate("Sign in options")

    resolver.locate("Sign in options", use_cache=False)
    assert backend.captures == 2
    assert backend.released == [2]

    clock.advance(0.5)
    again = resolver.locate("Sign in options")
    assert again.frame_reused is True
    assert backend.captures == 2


def test_alternatives_are_tried_in_declared_order(resolver, backend):
    backend.show("Email", 10, 20)
    backend.show("User", 30, 40)

    found = resolver.locate("Other user", ["Username", "Email", "User"])

    assert found.found
    assert found.matched_text == "Email"
    assert found.location == Point(10, 20)
    assert [c for _, c in backend.recognize_calls] == [("Other user",), ("Username",), ("Email",)]


def test_low_confidence_candidate_is_skipped(resolver, backend):
    backend.show("PIN", confidence=0.5)
    backend.show("Password", confidence=0.9)

    found = resolver.locate("PIN", ["Password"])
    assert found.matched_text == "Password"

    relaxed = resolver.locate("PIN", ["Password"], min_confidence=0.4)
    assert relaxed.matched_text == "PIN"


def test_not_found_names_every_searched_string(resolver):
    found = resolver.locate("Display Token", ["Token", "OTP"])

    assert found.found is False
    assert found.location is None
    assert found.searched == ("Display Token", "Token", "OTP")
    assert "Display Token, Token, OTP" in found.error


def test_capture_fault_propagates(resolver, backend):
    backend.capture_error = CaptureError("screen locked")

    with pytest.raises(CaptureError):
        resolver.locate("Welcome")


def test_invalidate_and_close_release_cached_frame(resolver, backend, clock):
    resolver.locate("Welcome")
    resolver.invalidate()
    assert backend.released == [1]

    resolver.locate("Welcome")
    assert backend.captures == 2

    resolver.close()
    assert backend.released == [1, 2]


def test_zero_ttl_disables_reuse(backend, clock):
    from sessionflow.modules.recognition.resolver import TextLocationResolver

    resolver = TextLocationResolver(backend, clock=clock, cache_ttl_ms=0)
    resolver.locate("Home")
    resolver.locate("Home")
    assert resolver.capture_count == 2
