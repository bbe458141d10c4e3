import os
import yaml


def load_config(path: str = "config.yaml") -> dict:
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


cfg = load_config(os.environ.get("LOOPGEN_CONFIG", "config.yaml"))

DEFAULT_API_BASE = os.environ.get("LOOPGEN_API_BASE") or cfg.get(
    "api_base", "https://api.replicate.com/v1"
)
# meta/musicgen
DEFAULT_MODEL_VERSION = os.environ.get("LOOPGEN_MODEL_VERSION") or cfg.get(
    "model_version",
    "b05b1dff1d8c6dc63d14b0cdb42135378dcb87f6373b0d3d341ede46e59e2b38",
)
DEFAULT_POLL_INTERVAL = float(cfg.get("poll_interval", 1.0))
DEFAULT_MAX_WAIT = float(cfg.get("max_wait", 300.0))
DEFAULT_REQUEST_TIMEOUT = float(cfg.get("request_timeout", 30.0))
DEFAULT_MAX_ATTEMPTS = cfg.get("max_attempts")
DEFAULT_ART_URL = cfg.get("art_url", "https://source.unsplash.com/random/album")

# Generation parameters sent with every prediction unless overridden
DEFAULT_INPUT = {
    "top_k": 250,
    "top_p": 0,
    "duration": 5,
    "temperature": 1,
    "continuation": False,
    "model_version": "stereo-large",
    "output_format": "wav",
    "continuation_start": 0,
    "multi_band_diffusion": False,
    "normalization_strategy": "peak",
    "classifier_free_guidance": 3,
}
DEFAULT_INPUT.update(cfg.get("input") or {})

OUTPUT_FORMATS = ["wav", "mp3"]


def get_api_token(config: dict | None = None) -> str:
    """Return the Replicate API token from the environment or the config file."""
    env = os.environ.get("REPLICATE_API_TOKEN")
    if env and env.strip():
        return env.strip()
    source = cfg if config is None else config
    return str(source.get("api_token") or "").strip()
