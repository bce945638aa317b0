"""Tests for scroll progress clamping, stepping and smoothing."""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tourengine.services.scroll_controller import ScrollPositionController  # type: ignore


@pytest.mark.parametrize("delta", [-1e9, -250.0, -0.3, 0.0, 0.7, 33.0, 1e9])
def test_target_always_within_bounds(delta: float) -> None:
    scroll = ScrollPositionController(40)
    scroll.apply_delta(delta)
    assert 0.0 <= scroll.target <= 39.0
    for _ in range(5):
        scroll.advance()
        assert 0.0 <= scroll.progress <= 39.0


def test_wheel_delta_scaled_by_scroll_speed() -> None:
    scroll = ScrollPositionController(40, scroll_speed=0.1)
    scroll.apply_delta(50.0)
    assert scroll.target == pytest.approx(5.0)
    assert scroll.progress == 0.0


def test_advance_covers_fraction_of_remaining_distance() -> None:
    scroll = ScrollPositionController(40, smoothing=0.1)
    scroll.set_target(10.0)
    assert scroll.advance() == pytest.approx(1.0)
    assert scroll.advance() == pytest.approx(1.9)
    for _ in range(300):
        scroll.advance()
    assert scroll.progress == pytest.approx(10.0, abs=1e-6)


def test_step_moves_ten_percent_of_path() -> None:
    scroll = ScrollPositionController(40)
    scroll.step(1)
    assert scroll.target == pytest.approx(3.9)
    scroll.step(-1)
    scroll.step(-1)
    assert scroll.target == 0.0


def test_single_sample_path_pins_progress() -> None:
    scroll = ScrollPositionController(1)
    scroll.apply_delta(1000.0)
    scroll.step(1)
    scroll.advance()
    assert scroll.progress == 0.0
    assert scroll.target == 0.0
    assert scroll.percentage == 0.0


def test_resize_reclamps_progress_and_target() -> None:
    scroll = ScrollPositionController(40)
    scroll.jump_to(39.0)
    scroll.resize(10)
    assert scroll.progress == 9.0
    assert scroll.target == 9.0
    assert scroll.percentage == pytest.approx(100.0)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_input_leaves_state_untouched(value: float) -> None:
    scroll = ScrollPositionController(40)
    scroll.set_target(12.0)
    scroll.advance()
    progress = scroll.progress

    scroll.apply_delta(value)
    scroll.set_target(value)
    scroll.jump_to(value)
    assert scroll.target == 12.0
    assert scroll.progress == progress
    assert scroll.advance() == pytest.approx(progress + (12.0 - progress) * 0.1)
