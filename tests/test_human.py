"""Tests for human-like input: mouse and keyboard are MagicMocks, sleeps are skipped."""
import random
from unittest.mock import MagicMock

import pytest

from headless_kit.human import behavior


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    slept = []
    monkeypatch.setattr(behavior.time, "sleep", slept.append)
    return slept


def test_human_sleep_bounds(no_sleep):
    random.seed(3)
    for _ in range(50):
        d = behavior.human_sleep(1.0, 2.0, distraction=0)
        assert 0.5 <= d <= 4.0
    assert len(no_sleep) == 50


def test_human_sleep_swapped_bounds():
    d = behavior.human_sleep(2.0, 1.0, distraction=0)
    assert 0.5 <= d <= 4.0


def test_bezier_path_ends_on_target():
    points = behavior.bezier_path(0, 0, 500, 300)
    assert 20 <= len(points) <= 41
    assert points[-1] == (500, 300)


def test_bezier_path_short_hop():
    assert behavior.bezier_path(100, 100, 103, 104) == [(103, 104)]


def test_bezier_move_tracks_position():
    page = MagicMock()
    behavior.bezier_move(page, 800, 400)
    page.mouse.move.assert_called_with(800, 400)
    assert behavior._get_mouse(page) == (800, 400)


def test_inertial_wheel_scrolls_exact_distance():
    page = MagicMock()
    assert behavior.inertial_wheel(page, 600) == 600
    total = sum(c.args[1] for c in page.mouse.wheel.call_args_list)
    assert total == 600


def test_inertial_wheel_negative():
    page = MagicMock()
    assert behavior.inertial_wheel(page, -250) == -250
    assert all(c.args[1] < 0 for c in page.mouse.wheel.call_args_list)


def test_inertial_wheel_zero():
    page = MagicMock()
    assert behavior.inertial_wheel(page, 0) == 0
    page.mouse.wheel.assert_not_called()


def test_human_scroll_moves_then_wheels():
    page = MagicMock()
    page.viewport_size = {"width": 1280, "height": 720}
    behavior.human_scroll(page, 400)
    assert page.mouse.move.called
    assert page.mouse.wheel.called


def test_human_click_inside_box():
    page = MagicMock()
    element = MagicMock()
    element.bounding_box.return_value = {"x": 100, "y": 200, "width": 80, "height": 40}
    behavior.human_click(page, element)
    x, y = page.mouse.click.call_args.args
    assert 100 <= x <= 180
    assert 200 <= y <= 240
    element.click.assert_not_called()


def test_human_click_without_box_falls_back():
    page = MagicMock()
    element = MagicMock()
    element.bounding_box.return_value = None
    behavior.human_click(page, element)
    element.click.assert_called_once_with()
    page.mouse.click.assert_not_called()


def test_human_type_key_by_key():
    element = MagicMock()
    behavior.human_type(element, "hi\n", pause_chance=0)
    assert [c.args[0] for c in element.type.call_args_list] == ["h", "i"]
    element.press.assert_called_once_with("Enter")


def test_dismiss_modal_escape(monkeypatch):
    monkeypatch.setattr(behavior.random, "random", lambda: 0.1)
    page = MagicMock()
    assert behavior.human_dismiss_modal(page) == "escape"
    page.keyboard.press.assert_called_once_with("Escape")


def test_dismiss_modal_close_button_falls_back(monkeypatch):
    monkeypatch.setattr(behavior.random, "random", lambda: 0.6)
    page = MagicMock()
    page.query_selector.return_value = None
    assert behavior.human_dismiss_modal(page, close_selectors=["#close"]) == "escape"
    page.query_selector.assert_called_once_with("#close")


def test_scroll_count_range():
    assert all(2 <= behavior.scroll_count() <= 5 for _ in range(20))
