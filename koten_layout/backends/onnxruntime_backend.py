from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import numpy as np

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    - providers: ORT execution providers, passed through untouched
      (None lets onnxruntime pick its default, usually CPU)
    - input_name/output_name: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    Runs the layout model: (1, 3, 640, 640) float32 in, (1, 4 + C, A) out.
    """

    def __init__(
        self,
        model_path: PathLike,
        cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig(),
        *,
        session: Optional[Any] = None,
    ):
        """
        `session` takes an already created InferenceSession (or anything with
        the same get_inputs/get_outputs/get_providers/run surface); when given,
        `model_path` is only kept for reference.
        """

        self.model_path = Path(model_path)
        self.session = session if session is not None else self._create_session(self.model_path, cfg)

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        LOGGER.info(
            "Session ready (input=%s, output=%s, providers=%s)",
            self.input_name,
            self.output_name,
            self.session.get_providers(),
        )

    @staticmethod
    def _create_session(model_path: Path, cfg: OnnxRuntimeBackendConfig) -> Any:
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        if not model_path.exists():
            raise FileNotFoundError(str(model_path))

        sess_opts = ort.SessionOptions()
        sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        providers = list(cfg.providers) if cfg.providers is not None else None
        LOGGER.info("Loading ONNX model from %s", model_path)
        return ort.InferenceSession(str(model_path), sess_options=sess_opts, providers=providers)

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: tensor})
        return outputs[0]

    run = infer
