"""Session bootstrap and tick loop driving a simulated host."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

from .config import CONFIG, CONFIG_PATH, load_config
from .core.session import TrackerSession
from .core.time_manager import TimeManager
from .overlay.score_overlay import format_labels
from .sim.simulated_host import SimulatedHost


log_level_str = CONFIG.logging.global_level
numeric_level = getattr(logging, log_level_str, logging.INFO)
logging.basicConfig(
    level=numeric_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True
)
logger = logging.getLogger(__name__)

# Apply per-module levels if defined
if CONFIG.logging.module_levels:
    for module_name, level_str in CONFIG.logging.module_levels.items():
        module_numeric_level = getattr(logging, str(level_str).upper(), None)
        if isinstance(module_numeric_level, int):
            logging.getLogger(module_name).setLevel(module_numeric_level)
        else:
            logger.warning("Invalid log level '%s' for module '%s' in config.", level_str, module_name)

API_KEY_ENV = "ANOMALY_WATCH_API_KEY"
OVERLAY_LOG_INTERVAL = 10


def bootstrap(
    config_path: str | Path = CONFIG_PATH, seed: int | None = None
) -> Tuple[TrackerSession, SimulatedHost, TimeManager]:
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    cfg = load_config(Path(config_path))
    api_key = os.getenv(API_KEY_ENV)
    if api_key:
        cfg = replace(cfg, tracking=replace(cfg.tracking, api_key=api_key))
        logger.info("[Bootstrap] API key taken from %s", API_KEY_ENV)

    host = SimulatedHost(seed=seed)
    session = TrackerSession(host, cfg)
    tm = TimeManager(cfg.session.tick_rate)
    logger.info(
        "[Bootstrap] Tick rate %.2f/s, flush every %d ticks (~%.0fs)",
        tm.tick_rate,
        cfg.submission.flush_interval_ticks,
        cfg.submission.flush_interval_ticks * tm.tick_interval,
    )
    return session, host, tm


def main() -> None:
    session, host, tm = bootstrap()
    session.start_up()
    session.on_game_state_changed(host.log_in())

    logger.info("Anomaly watch running against a simulated session. Press Ctrl+C to stop.")
    try:
        while True:
            host.step()
            session.update(tm.tick_counter)
            if tm.tick_counter % OVERLAY_LOG_INTERVAL == 0:
                labels = session.render_overlay()
                if labels:
                    logger.info("[Overlay] %s", format_labels(labels))
            tm.sleep_until_next_tick()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt caught. Shutting down...")
    finally:
        session.on_game_state_changed(host.log_out())
        session.shut_down()


if __name__ == "__main__":
    main()
