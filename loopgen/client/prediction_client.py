import requests
from typing import Optional, Dict, Any

from loopgen.config import (
    DEFAULT_API_BASE,
    DEFAULT_MODEL_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    get_api_token,
)
from loopgen.loopgenlog import LOG
from loopgen.models import (
    PredictionHandle,
    PredictionInput,
    PredictionRequest,
    PredictionStatus,
)


class PredictionFailed(RuntimeError):
    """The prediction reached a failed or canceled status."""

    def __init__(self, status: PredictionStatus):
        self.status = status
        super().__init__(
            f"Prediction ended with status={status.status}: {status.error or 'no error given'}"
        )


class PredictionTimeout(TimeoutError):
    pass


class PredictionClient:
    """
    Python client for the Replicate predictions API.
    Supports creating predictions, polling their status, cancelling, and
    downloading the files they produce.
    """

    def __init__(
        self,
        api_token: Optional[str] = None,
        base_url: str = DEFAULT_API_BASE,
        model_version: str = DEFAULT_MODEL_VERSION,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model_version = model_version
        self.timeout = timeout
        self.session = session or requests.Session()
        token = api_token if api_token is not None else get_api_token()
        if not token:
            LOG.warning("No API token configured; set REPLICATE_API_TOKEN")
        self.headers = {
            "Authorization": f"Token {token}",
            "Content-Type": "application/json",
        }
        LOG.info(
            "Initialized PredictionClient with base_url=%s, timeout=%.1fs",
            self.base_url,
            self.timeout,
        )

    # ---------------- Create ----------------
    def build_request(self, prompt: str, **params: Any) -> PredictionRequest:
        """Fixed-shape request body; params override the default generation inputs."""
        overrides = {k: v for k, v in params.items() if v is not None}
        return PredictionRequest(
            version=self.model_version,
            input=PredictionInput(prompt=prompt, **overrides),
        )

    def create_prediction(self, prompt: str, **params: Any) -> PredictionHandle:
        """Submit a new prediction, returns its handle"""
        body = self.build_request(prompt, **params)
        LOG.info(
            "Creating prediction (duration=%s, format=%s)",
            body.input.duration,
            body.input.output_format,
        )
        try:
            resp = self.session.post(
                f"{self.base_url}/predictions",
                json=body.model_dump(),
                headers=self.headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            handle = PredictionHandle.model_validate(resp.json())
            LOG.info("Prediction created, id=%s", handle.id)
            return handle
        except Exception:
            LOG.exception("Failed to create prediction")
            raise

    # ---------------- Status ----------------
    def get_prediction(self, prediction_id: str) -> PredictionStatus:
        """Fetch the current status of a prediction"""
        LOG.debug("Fetching status for prediction_id=%s", prediction_id)
        try:
            resp = self.session.get(
                f"{self.base_url}/predictions/{prediction_id}",
                headers=self.headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return PredictionStatus.model_validate(resp.json())
        except Exception:
            LOG.exception("Failed to get status for prediction_id=%s", prediction_id)
            raise

    # ---------------- Cancel ----------------
    def cancel_prediction(self, prediction_id: str) -> Dict[str, Any]:
        LOG.info("Cancelling prediction_id=%s", prediction_id)
        try:
            resp = self.session.post(
                f"{self.base_url}/predictions/{prediction_id}/cancel",
                headers=self.headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            LOG.info("Prediction %s cancelled", prediction_id)
            return resp.json()
        except Exception:
            LOG.exception("Failed to cancel prediction_id=%s", prediction_id)
            raise

    # ---------------- Download ----------------
    def download(self, url: str, chunk_size: int = 64 * 1024) -> bytes:
        """Stream a file produced by a prediction into memory."""
        LOG.info("Downloading %s", url)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                data = b"".join(resp.iter_content(chunk_size=chunk_size))
            LOG.info("Downloaded %d bytes", len(data))
            return data
        except Exception:
            LOG.exception("Failed to download %s", url)
            raise

    def close(self):
        self.session.close()
