"""Response transformation -- shrink payloads before they are returned or cached.

* :class:`ResponseTransformer` -- one ``fields`` / ``rename`` stage.
* :class:`TransformPipeline` -- an ordered list of stages.
"""

from apiwire.transform.pipeline import TransformPipeline
from apiwire.transform.transformer import ResponseTransformer

__all__ = ["ResponseTransformer", "TransformPipeline"]
