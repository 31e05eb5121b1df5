"""Cookie persistence in Playwright's storage-state JSON format."""
import json
import logging
import os

log = logging.getLogger(__name__)


def save_cookies(context, state_path: str) -> int:
    """Write the context's cookies to a storage-state JSON file.

    Returns the number of cookies written.
    """
    state = context.storage_state()
    cookies = state.get("cookies", [])
    parent = os.path.dirname(os.path.abspath(state_path))
    os.makedirs(parent, exist_ok=True)
    with open(state_path, "w", encoding="utf-8") as f:
        json.dump({"cookies": cookies, "origins": state.get("origins", [])}, f, indent=2)
    log.debug("Saved %d cookies to %s", len(cookies), state_path)
    return len(cookies)


def load_cookies(context, state_path: str) -> int:
    """Import cookies from a storage-state JSON file into a browser context.

    Returns the number of cookies loaded. Never raises: returns 0 on
    missing file, corrupt JSON, or any other error.
    """
    if not os.path.isfile(state_path):
        return 0
    try:
        with open(state_path, "r", encoding="utf-8") as f:
            state = json.load(f)
        cookies = state.get("cookies", []) if isinstance(state, dict) else state
        if cookies:
            context.add_cookies(cookies)
            return len(cookies)
        return 0
    except Exception as e:
        log.debug(f"Cookie load from {state_path} failed: {e}")
        return 0
