from .prediction_client import PredictionClient, PredictionFailed, PredictionTimeout

__all__ = ["PredictionClient", "PredictionFailed", "PredictionTimeout"]
