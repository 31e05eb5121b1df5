"""Form-filling helpers.

``fill_form`` takes a list of ``FormField`` (selector + value) and works
out how to set each one from the element itself: text-like inputs are
filled or typed, selects get ``select_option``, checkboxes/radios are
checked or unchecked, file inputs get ``set_input_files``.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

from ..engine.errors import ElementNotFoundError, classify_error
from ..human.behavior import human_click, human_sleep, human_type

log = logging.getLogger(__name__)

FIELD_KINDS = ("auto", "text", "textarea", "select", "checkbox", "radio", "file")

# input types that take free text
_TEXT_INPUT_TYPES = frozenset({
    "text", "email", "password", "search", "tel", "url", "number",
    "date", "datetime-local", "month", "week", "time", "color", "",
})


@dataclass
class FormField:
    selector: str
    value: Any
    kind: str = "auto"

    def __post_init__(self):
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"unknown field kind {self.kind!r}; use one of {FIELD_KINDS}")


@dataclass
class FillReport:
    filled: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def detect_kind(element) -> str:
    """Field kind from the element's tag name and ``type`` attribute."""
    tag = (element.evaluate("el => el.tagName") or "").lower()
    if tag == "select":
        return "select"
    if tag == "textarea":
        return "textarea"
    if tag != "input":
        # contenteditable and friends accept fill()
        return "text"
    input_type = (element.get_attribute("type") or "").lower()
    if input_type in ("checkbox", "radio", "file"):
        return input_type
    if input_type in _TEXT_INPUT_TYPES:
        return "text"
    raise ValueError(f"cannot fill input of type {input_type!r}")


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on", "checked")
    return bool(value)


def fill_field(page, form_field: FormField, *, human: bool = False, timeout_ms: int = 5000) -> str:
    """Set one field. Returns the kind that was used.

    Raises ``ElementNotFoundError`` when the selector matches nothing.
    """
    element = page.query_selector(form_field.selector)
    if element is None:
        try:
            element = page.wait_for_selector(form_field.selector, state="attached", timeout=timeout_ms)
        except Exception as e:
            raise ElementNotFoundError(message=f"{form_field.selector}: {e}") from e
    if element is None:
        raise ElementNotFoundError(message=f"{form_field.selector}: no such element")

    kind = form_field.kind if form_field.kind != "auto" else detect_kind(element)
    value = form_field.value

    if kind in ("text", "textarea"):
        text = "" if value is None else str(value)
        if human:
            human_click(page, element)
            element.fill("")
            human_type(element, text)
        else:
            element.fill(text)
    elif kind == "select":
        values = value if isinstance(value, (list, tuple)) else [value]
        element.select_option([str(v) for v in values])
    elif kind in ("checkbox", "radio"):
        if _as_bool(value):
            element.check()
        elif kind == "checkbox":
            element.uncheck()
    elif kind == "file":
        element.set_input_files(value)

    log.debug("    filled %s (%s)", form_field.selector, kind)
    return kind


def fill_form(page, fields, *, human: bool = False, stop_on_error: bool = False) -> FillReport:
    """Fill *fields* in order. Accepts FormField items or a selector->value dict.

    Failures are collected in the report; with *stop_on_error* the first
    one is raised instead.
    """
    if isinstance(fields, dict):
        fields = [FormField(selector, value) for selector, value in fields.items()]
    report = FillReport()
    for form_field in fields:
        try:
            fill_field(page, form_field, human=human)
            report.filled.append(form_field.selector)
        except Exception as e:
            if stop_on_error:
                raise
            report.failed[form_field.selector] = f"{classify_error(e).value}: {e}"
            log.warning("Could not fill %s: %s", form_field.selector, e)
        if human:
            human_sleep(0.2, 0.6, distraction=0)
    return report


def submit_form(page, submit_selector: str, *, wait_for_navigation: bool = True,
                timeout_ms: int = 30000, human: bool = False) -> None:
    """Click the submit control, optionally waiting for the resulting navigation."""
    element = page.query_selector(submit_selector)
    if element is None:
        raise ElementNotFoundError(message=f"{submit_selector}: no such element")

    def _click():
        if human:
            human_click(page, element)
        else:
            element.click()

    if wait_for_navigation:
        with page.expect_navigation(timeout=timeout_ms):
            _click()
    else:
        _click()
