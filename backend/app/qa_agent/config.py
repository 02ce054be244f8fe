"""
Engine Configuration

Every timeout, delay, cap and heuristic factor used by the scanner,
readiness detector, executor and coordinator lives here.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional


ENV_PREFIX = "QA_AGENT_"


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Configuration for the discovery and execution engine"""
    # Browser
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    locale: str = "en-US"
    timezone_id: str = "America/New_York"
    browser_args: List[str] = field(default_factory=lambda: [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--disable-extensions",
        "--mute-audio",
        "--no-first-run",
    ])

    # Navigation
    navigation_timeout_ms: int = 30000
    navigation_retries: int = 3
    navigation_retry_pause_ms: int = 1000
    fallback_navigation_timeout_ms: int = 15000
    blocked_content_bytes: int = 100  # body.innerHTML below this = blocked/empty

    # Readiness heuristic
    network_idle_timeout_ms: int = 5000
    content_wait_timeout_ms: int = 10000
    content_min_bytes: int = 2000
    settle_delay_ms: int = 1000
    scroll_pause_ms: int = 300
    scroll_fraction: float = 0.5
    final_settle_ms: int = 300

    # Scanner
    max_raw_candidates: int = 100
    max_elements: int = 80
    viewport_height_factor: float = 3.0
    viewport_width_factor: float = 2.0
    attribute_max_length: int = 100
    visible_text_max_length: int = 2000
    structural_path_depth: int = 4
    screenshot_quality: int = 60
    evaluate_retries: int = 3  # retries when a late navigation destroys the context
    evaluate_retry_pause_ms: int = 1500

    # Executor
    visible_timeout_ms: int = 5000
    scroll_timeout_ms: int = 2000
    fill_timeout_ms: int = 3000
    click_timeout_ms: int = 5000
    action_timeout_ms: int = 10000
    focus_pause_ms: int = 200
    keyboard_delay_ms: int = 30
    default_wait_ms: int = 1000
    step_pause_ms: int = 500

    # Artifacts
    screenshot_dir: str = "screenshots"
    screenshot_url_prefix: str = "/screenshots"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "EngineConfig":
        """
        Build a config from QA_AGENT_* environment variables.

        Unset variables keep their defaults. List values are comma-separated.
        """
        environ = os.environ if environ is None else environ
        config = cls()

        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue

            current = getattr(config, f.name)
            if isinstance(current, bool):
                value = _env_bool(raw)
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            elif isinstance(current, list):
                value = [part.strip() for part in raw.split(",") if part.strip()]
            else:
                value = raw
            setattr(config, f.name, value)

        return config
