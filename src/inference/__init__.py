"""
Inference layer: backend protocol, CPU backend and the async model adapter.
"""

from .backend import InferenceBackend, NullBackend
from .adapter import DetectionModelAdapter, ModelState, backend_factory_from_config

__all__ = [
    "InferenceBackend",
    "NullBackend",
    "DetectionModelAdapter",
    "ModelState",
    "backend_factory_from_config",
]
