"""Smoke tests: every subpackage exports its public API."""


def test_top_level_imports():
    import headless_kit
    from headless_kit import Settings, AutomationError, ErrorKind, classify_error, retry_call, with_retry
    assert headless_kit.__version__
    assert callable(classify_error)
    assert callable(retry_call)
    assert callable(with_retry)
    assert issubclass(AutomationError, Exception)
    assert ErrorKind.TIMEOUT.value == "timeout"
    assert Settings().log_level == "INFO"


def test_browser_imports():
    from headless_kit.browser import (
        build_launch_args,
        find_system_chrome,
        launch_cdp_browser,
        kill_stale_cdp,
        load_cookies,
        save_cookies,
        download_via_click,
        enable_cdp_downloads,
        block_requests,
        launch_browser,
        new_context,
        open_browser,
        build_stealth_shim,
        inject_stealth,
        setup_cdp_stealth,
        get_chromium_version,
        build_user_agent,
        random_user_agent,
    )
    for fn in (build_launch_args, find_system_chrome, launch_cdp_browser, kill_stale_cdp,
               load_cookies, save_cookies, download_via_click, enable_cdp_downloads,
               block_requests, launch_browser, new_context, open_browser,
               build_stealth_shim, inject_stealth, setup_cdp_stealth,
               get_chromium_version, build_user_agent, random_user_agent):
        assert callable(fn)


def test_capture_imports():
    from headless_kit.capture import ResponseTap, PdfOptions, render_pdf, take_screenshot, screenshot_element
    assert callable(ResponseTap)
    assert callable(PdfOptions)
    assert callable(render_pdf)
    assert callable(take_screenshot)
    assert callable(screenshot_element)


def test_human_imports():
    from headless_kit.human import (
        human_sleep,
        bezier_move,
        inertial_wheel,
        human_scroll,
        human_click,
        human_type,
        human_dismiss_modal,
        scroll_count,
    )
    assert callable(human_sleep)
    assert callable(bezier_move)
    assert callable(inertial_wheel)
    assert callable(human_scroll)
    assert callable(human_click)
    assert callable(human_type)
    assert callable(human_dismiss_modal)
    assert callable(scroll_count)


def test_engine_imports():
    from headless_kit.engine import (
        ConsoleCollector,
        GracefulShutdown,
        HealthMonitor,
        capture_failure_bundle,
        backoff_delay,
    )
    assert callable(ConsoleCollector)
    assert callable(GracefulShutdown)
    assert callable(HealthMonitor)
    assert callable(capture_failure_bundle)
    assert callable(backoff_delay)


def test_pool_forms_testing_telemetry_imports():
    from headless_kit.pool import BrowserPool, Cluster, ConcurrencyMode
    from headless_kit.forms import fill_form, submit_form
    from headless_kit.testing import BasePage, assert_no_console_errors
    from headless_kit.telemetry import TaskEventLogger, setup_logging
    assert ConcurrencyMode("page") is ConcurrencyMode.PAGE
    for obj in (BrowserPool, Cluster, fill_form, submit_form, BasePage,
                assert_no_console_errors, TaskEventLogger, setup_logging):
        assert callable(obj)
