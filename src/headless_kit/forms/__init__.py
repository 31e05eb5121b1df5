"""forms: form-filling and submission helpers."""
from .filler import FillReport, FormField, detect_kind, fill_field, fill_form, submit_form  # noqa: F401
