from typing import Any, Optional
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from .config import DEFAULT_INPUT

SUCCEEDED = "succeeded"
FAILED_STATUSES = ("failed", "canceled")

_http_url = TypeAdapter(AnyHttpUrl)


class PredictionInput(BaseModel):
    prompt: str
    top_k: int = DEFAULT_INPUT["top_k"]
    top_p: float = DEFAULT_INPUT["top_p"]
    duration: int = DEFAULT_INPUT["duration"]
    temperature: float = DEFAULT_INPUT["temperature"]
    continuation: bool = DEFAULT_INPUT["continuation"]
    model_version: str = DEFAULT_INPUT["model_version"]
    output_format: str = DEFAULT_INPUT["output_format"]
    continuation_start: int = DEFAULT_INPUT["continuation_start"]
    multi_band_diffusion: bool = DEFAULT_INPUT["multi_band_diffusion"]
    normalization_strategy: str = DEFAULT_INPUT["normalization_strategy"]
    classifier_free_guidance: float = DEFAULT_INPUT["classifier_free_guidance"]


class PredictionRequest(BaseModel):
    version: str
    input: PredictionInput


class PredictionHandle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class PredictionStatus(BaseModel):
    """
    Snapshot of a prediction as returned by the status endpoint.
    `output` may be a single URL or a list of URLs depending on the model.
    """

    model_config = ConfigDict(extra="ignore")

    status: str
    output: Optional[str] = None
    error: Optional[Any] = None

    @field_validator("output", mode="before")
    @classmethod
    def _first_output(cls, value):
        if isinstance(value, list):
            return value[0] if value else None
        return value

    @property
    def output_url(self) -> Optional[str]:
        """The output if it is an absolute http(s) URL, else None."""
        if not self.output:
            return None
        try:
            _http_url.validate_python(self.output)
        except ValidationError:
            return None
        return self.output

    @property
    def is_succeeded(self) -> bool:
        return self.status == SUCCEEDED and self.output_url is not None

    @property
    def is_failed(self) -> bool:
        return self.status in FAILED_STATUSES
