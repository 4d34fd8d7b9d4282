import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Union

from config import CANCER_THRESHOLD, MAX_IMAGE_PIXELS
from errors import ErrorKind, Failure
from model import load_model
from utils import ImageTooLarge, predict_image_score

logger = logging.getLogger(__name__)

CANCER = "Cancer"
NON_CANCER = "Non-cancer"

SUGGESTIONS = {
    CANCER: "Please see a doctor promptly!",
    NON_CANCER: "No cancer detected.",
}


class ModelState(enum.Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class ModelHandle:
    """Holds the classifier once startup loading settles.

    Moves from PENDING to READY or FAILED exactly once and is read-only after.
    """

    def __init__(self):
        self.state = ModelState.PENDING
        self.error = None
        self._model = None

    @classmethod
    def ready(cls, model):
        handle = cls()
        handle.publish(model)
        return handle

    @classmethod
    def failed(cls, error):
        handle = cls()
        handle.fail(error)
        return handle

    @property
    def model(self):
        if self.state is ModelState.READY:
            return self._model
        return None

    def publish(self, model):
        self._check_pending()
        self._model = model
        self.state = ModelState.READY

    def fail(self, error):
        self._check_pending()
        self.error = error
        self.state = ModelState.FAILED

    def _check_pending(self):
        if self.state is not ModelState.PENDING:
            raise RuntimeError(f"model handle already settled as {self.state.value}")


async def load_model_async(model_path):
    logger.info("Model path: %s", model_path)
    try:
        model = await asyncio.to_thread(load_model, model_path)
    except Exception:
        logger.exception("Error loading model from %s", model_path)
        return Failure(ErrorKind.MODEL_UNAVAILABLE)

    logger.info("Model loaded successfully")
    return model


async def load_into(handle: ModelHandle, model_path):
    outcome = await load_model_async(model_path)
    if isinstance(outcome, Failure):
        handle.fail(outcome)
    else:
        handle.publish(outcome)
    return handle


@dataclass(frozen=True)
class Prediction:
    result: str
    suggestion: str
    score: float


def classify(score: float) -> str:
    return CANCER if score > CANCER_THRESHOLD else NON_CANCER


def predict(handle: ModelHandle, image_bytes: bytes) -> Union[Prediction, Failure]:
    model = handle.model
    if model is None:
        return Failure(ErrorKind.MODEL_UNAVAILABLE)

    try:
        score = predict_image_score(model, image_bytes)
    except ImageTooLarge as e:
        logger.warning("Rejected image: %s", e)
        return Failure(ErrorKind.INVALID_INPUT, f"Image dimensions exceed maximum allowed: {MAX_IMAGE_PIXELS} pixels")
    except Exception:
        logger.exception("Inference failed")
        return Failure(ErrorKind.INFERENCE_ERROR)

    result = classify(score)
    return Prediction(result=result, suggestion=SUGGESTIONS[result], score=score)
