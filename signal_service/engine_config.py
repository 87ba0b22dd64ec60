"""Engine configuration loaded from signals.yaml.

Every section is optional; missing sections and a missing file fall back to
the built-in defaults.
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv

from signal_core.models.config import EngineConfig

logger = logging.getLogger(__name__)

_DEFAULT_PATH = Path(__file__).parent.parent / "signals.yaml"


def load_engine_config(path: Path | str | None = None) -> EngineConfig:
    """Load engine config from a YAML file.

    Falls back to defaults if the file doesn't exist.

    Raises:
        pydantic.ValidationError: If the file holds invalid values (for
            example scoring weights that do not total 100).
    """
    config_path = Path(path) if path else _DEFAULT_PATH

    # Settings read from the environment live next to the YAML file
    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info("No signals.yaml found at %s, using defaults", config_path)
        return EngineConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = EngineConfig(**raw)
    logger.info(
        "Loaded engine config: min_bars=%d, quality>=%.0f/%.0f/%.1f, pool>=%d",
        config.min_bars,
        config.quality.min_success_rate,
        config.quality.min_direction_score,
        config.quality.min_risk_reward,
        config.replacement.min_pool_size,
    )
    return config
