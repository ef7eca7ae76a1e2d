"""Ordered composition of transform stages.

A pipeline feeds the output of each
:class:`~apiwire.transform.transformer.ResponseTransformer` into the next.
An empty pipeline is the identity. A stage that fails is logged and its
input is handed to the next stage unchanged.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional, Union

from apiwire.models import EndpointConfig, GraphQLOperationConfig, TransformConfig
from apiwire.output import get_output
from apiwire.transform.transformer import ResponseTransformer

logger = logging.getLogger(__name__)


def _payload_size(data: Any) -> int:
    return len(json.dumps(data, default=str))


class TransformPipeline:
    """Run several transform stages in declared order.

    Args:
        configs: The stages, applied left to right.

    Example::

        pipeline = TransformPipeline([
            TransformConfig(fields=["items[*].id", "items[*].title"]),
            TransformConfig(rename={"items": "issues"}),
        ])
        slim = pipeline.transform(response_data)
    """

    def __init__(self, configs: list[TransformConfig]) -> None:
        self._transformers = [ResponseTransformer(config) for config in configs]

    def __len__(self) -> int:
        return len(self._transformers)

    def transform(self, data: Any) -> Any:
        output = get_output()
        result = data
        for step, transformer in enumerate(self._transformers, start=1):
            try:
                started = time.perf_counter()
                input_size = _payload_size(result)
                result = transformer.transform(result)
                output_size = _payload_size(result)
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                reduction = round((1 - output_size / input_size) * 100) if input_size else 0
                output.debug(
                    f"TRANSFORM step {step}: {input_size} -> {output_size} bytes "
                    f"({reduction}% reduction, {elapsed_ms}ms)"
                )
            except Exception:
                logger.exception("Transform step %d failed, continuing", step)
        return result

    @classmethod
    def from_endpoint(
        cls, endpoint: Union[EndpointConfig, GraphQLOperationConfig]
    ) -> Optional[TransformPipeline]:
        """Build the pipeline declared by *endpoint*, or ``None`` if it has none."""
        configs = endpoint.transforms
        if not configs:
            return None
        return cls(configs)
