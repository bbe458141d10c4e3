# loopgen/app.py
import argparse
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

from .art import AlbumArtLoader
from .client.prediction_client import PredictionClient, PredictionFailed, PredictionTimeout
from .config import (
    DEFAULT_API_BASE,
    DEFAULT_ART_URL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_WAIT,
    DEFAULT_MODEL_VERSION,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    OUTPUT_FORMATS,
    load_config,
    get_api_token,
)
from .loopgenlog import LOG, LoopgenLogger
from .player import AudioPlayer
from .poller import StatusPoller


# -----------------------------
# Session state
# -----------------------------
@dataclass
class SessionState:
    loading: bool = False
    prediction_id: Optional[str] = None
    output_url: Optional[str] = None
    player: Optional[AudioPlayer] = None
    album_art: Optional[bytes] = None
    last_error: Optional[str] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


# -----------------------------
# LoopgenApp orchestrator
# -----------------------------
class LoopgenApp:
    """Runs submit -> poll -> play for each prompt and owns the session state."""

    def __init__(
        self,
        client: PredictionClient,
        art_loader: Optional[AlbumArtLoader] = None,
        player_factory: Optional[Callable[[], AudioPlayer]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: Optional[float] = DEFAULT_MAX_WAIT,
        max_attempts: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
        play: bool = True,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.client = client
        self.art_loader = art_loader
        self.player_factory = player_factory or (lambda: AudioPlayer(client.download))
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.max_attempts = max_attempts
        self.params = params or {}
        self.play_audio = play
        self._sleep = sleep
        self.state = SessionState()
        self._art_thread: Optional[threading.Thread] = None

    def start(self):
        """Kick off the album art fetch; it runs alongside everything else."""
        if self.art_loader is not None and self._art_thread is None:
            self._art_thread = self.art_loader.load_in_background(self._set_album_art)

    def _set_album_art(self, image: Optional[bytes]):
        with self.state.lock:
            self.state.album_art = image

    def wait_for_art(self, timeout: Optional[float] = None) -> Optional[bytes]:
        if self._art_thread is not None:
            self._art_thread.join(timeout)
        return self.state.album_art

    def _fail(self, message: str) -> None:
        with self.state.lock:
            self.state.loading = False
            self.state.last_error = message

    def submit(self, prompt: str) -> Optional[str]:
        try:
            handle = self.client.create_prediction(prompt, **self.params)
        except (requests.RequestException, ValueError) as e:
            self._fail(f"submission failed: {e}")
            return None
        with self.state.lock:
            self.state.prediction_id = handle.id
        return handle.id

    def make_poller(self, prediction_id: str) -> StatusPoller:
        kwargs = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return StatusPoller(
            self.client,
            prediction_id,
            poll_interval=self.poll_interval,
            max_wait=self.max_wait,
            max_attempts=self.max_attempts,
            **kwargs,
        )

    def generate(self, prompt: str) -> Optional[AudioPlayer]:
        """
        Generate a track for `prompt` and start looping it.
        Returns the playing AudioPlayer, or None if any step failed.
        """
        with self.state.lock:
            self.state.loading = True
            self.state.last_error = None
            self.state.output_url = None
        LOG.info("Generating music for prompt %r", prompt)

        prediction_id = self.submit(prompt)
        if prediction_id is None:
            return None

        try:
            status = self.make_poller(prediction_id).wait()
        except (PredictionFailed, PredictionTimeout) as e:
            LOG.error("%s", e)
            self._fail(str(e))
            return None

        with self.state.lock:
            self.state.output_url = status.output_url

        if not self.play_audio:
            with self.state.lock:
                self.state.loading = False
            return None

        return self._play(status.output_url)

    def _play(self, url: str) -> Optional[AudioPlayer]:
        self.stop_player()
        player = self.player_factory()
        try:
            player.play(url)
        except Exception as e:
            LOG.exception("Playback of %s failed", url)
            self._fail(f"playback failed: {e}")
            return None
        with self.state.lock:
            self.state.player = player
            self.state.loading = False
        return player

    def stop_player(self):
        with self.state.lock:
            player, self.state.player = self.state.player, None
        if player is not None:
            player.stop()

    def shutdown(self):
        self.stop_player()
        self.client.close()


# -----------------------------
# CLI helpers
# -----------------------------
def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value}")
    return number


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value}")
    return number


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loopgen",
        description="Generate a music loop from a text prompt and play it.",
    )
    parser.add_argument("prompt", nargs="?", help="Text prompt, e.g. 'lofi beat'")
    parser.add_argument(
        "-i", "--interactive", action="store_true", help="Read prompts in a loop"
    )
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--model-version", default=None, help="Replicate model version")
    parser.add_argument("--duration", type=int, default=None, help="Seconds of audio")
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--output-format", choices=OUTPUT_FORMATS, default=None)
    parser.add_argument(
        "--poll-interval",
        type=positive_float,
        default=None,
        help=f"Seconds between polls (default: {DEFAULT_POLL_INTERVAL})",
    )
    parser.add_argument(
        "--max-wait",
        type=positive_float,
        default=None,
        help=f"Give up after this many seconds (default: {DEFAULT_MAX_WAIT})",
    )
    parser.add_argument(
        "--max-attempts",
        type=positive_int,
        default=None,
        help="Give up after this many polls (default: unlimited)",
    )
    parser.add_argument("--save-audio", metavar="PATH", help="Write the generated audio here")
    parser.add_argument("--art-out", metavar="PATH", help="Write the album art here")
    parser.add_argument(
        "--no-play", action="store_true", help="Only print the output URL"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _pick(flag, config: dict, key: str, default):
    """Command line flag first, then the config file, then the built-in default."""
    if flag is not None:
        return flag
    value = config.get(key)
    return default if value is None else value


def build_app(args: argparse.Namespace) -> LoopgenApp:
    config = load_config(args.config) if args.config else {}
    client = PredictionClient(
        api_token=get_api_token(config if args.config else None),
        base_url=config.get("api_base") or DEFAULT_API_BASE,
        model_version=_pick(args.model_version, config, "model_version", DEFAULT_MODEL_VERSION),
        timeout=float(config.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
    )
    params = dict(config.get("input") or {})
    overrides = {
        "duration": args.duration,
        "temperature": args.temperature,
        "output_format": args.output_format,
    }
    params.update({k: v for k, v in overrides.items() if v is not None})

    max_attempts = _pick(args.max_attempts, config, "max_attempts", DEFAULT_MAX_ATTEMPTS)
    art_loader = AlbumArtLoader(url=config.get("art_url") or DEFAULT_ART_URL)
    return LoopgenApp(
        client,
        art_loader=art_loader,
        poll_interval=float(_pick(args.poll_interval, config, "poll_interval", DEFAULT_POLL_INTERVAL)),
        max_wait=float(_pick(args.max_wait, config, "max_wait", DEFAULT_MAX_WAIT)),
        max_attempts=int(max_attempts) if max_attempts is not None else None,
        params=params,
        play=not args.no_play,
    )


def _save_outputs(app: LoopgenApp, args: argparse.Namespace):
    state = app.state
    if args.save_audio:
        if state.player is not None:
            state.player.save_audio(args.save_audio)
        else:
            data = app.client.download(state.output_url)
            with open(args.save_audio, "wb") as f:
                f.write(data)
            LOG.info("Saved audio to %s", args.save_audio)
    if args.art_out and app.wait_for_art(timeout=5) is not None:
        app.art_loader.save(args.art_out)


def _report(app: LoopgenApp, args: argparse.Namespace):
    state = app.state
    if state.last_error:
        print(f"Generation failed: {state.last_error}")
        return
    print(f"Output: {state.output_url}")
    try:
        _save_outputs(app, args)
    except (requests.RequestException, OSError) as e:
        LOG.error("Could not save output: %s", e)
        app._fail(f"saving failed: {e}")
        print(f"Saving failed: {e}")


def run_interactive(app: LoopgenApp, args: argparse.Namespace, read=input):
    print("Enter prompt to generate music (empty line or 'quit' to exit)")
    while True:
        try:
            prompt = read("> ").strip()
        except EOFError:
            break
        if not prompt or prompt.lower() in ("quit", "exit", "q"):
            break
        app.generate(prompt)
        _report(app, args)


# -----------------------------
# CLI entry point
# -----------------------------
def main(argv=None):
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        LoopgenLogger.set_level(logging.DEBUG)
    if args.prompt is None and not args.interactive:
        parser.error("a prompt is required unless --interactive is given")

    app = build_app(args)
    app.start()
    try:
        if args.interactive:
            run_interactive(app, args)
        else:
            app.generate(args.prompt)
            _report(app, args)
            if app.state.player is not None:
                print("Looping playback, press Ctrl+C to stop")
                threading.Event().wait()
    except KeyboardInterrupt:
        print()
    finally:
        app.shutdown()
    return 1 if app.state.last_error else 0


if __name__ == "__main__":
    raise SystemExit(main())
