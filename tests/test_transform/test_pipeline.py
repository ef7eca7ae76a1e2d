"""Tests for multi-stage transform pipelines."""

from __future__ import annotations

import pytest

from apiwire.models import EndpointConfig, TransformConfig
from apiwire.transform import TransformPipeline


class TestTransformPipeline:
    def test_stages_run_in_order(self) -> None:
        pipeline = TransformPipeline(
            [
                TransformConfig(fields=["items[*].id", "items[*].title"]),
                TransformConfig(rename={"items": "issues"}),
            ]
        )
        data = {"total": 2, "items": [{"id": 1, "title": "a", "body": "x"}]}
        assert pipeline.transform(data) == {"issues": [{"id": 1, "title": "a"}]}
        assert len(pipeline) == 2

    def test_empty_pipeline_is_identity(self) -> None:
        data = {"a": 1}
        assert TransformPipeline([]).transform(data) == data

    def test_failed_stage_is_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pipeline = TransformPipeline(
            [TransformConfig(fields=["a"]), TransformConfig(rename={"a": "b"})]
        )

        def _boom(data):
            raise RuntimeError("boom")

        monkeypatch.setattr(pipeline._transformers[0], "transform", _boom)
        assert pipeline.transform({"a": 1, "c": 2}) == {"b": 1, "c": 2}

    def test_debug_reports_size(self, debug_output, capsys: pytest.CaptureFixture[str]) -> None:
        TransformPipeline([TransformConfig(fields=["a"])]).transform({"a": 1, "b": "x" * 100})
        err = capsys.readouterr().err
        assert "[debug] TRANSFORM step 1:" in err
        assert "reduction" in err


class TestFromEndpoint:
    def test_none_without_transform(self) -> None:
        endpoint = EndpointConfig(name="e", method="GET", path="/e")
        assert TransformPipeline.from_endpoint(endpoint) is None

    def test_single_and_list_forms(self) -> None:
        single = EndpointConfig(name="e", method="GET", path="/e", transform={"fields": ["a"]})
        multi = EndpointConfig(
            name="e", method="GET", path="/e", transform=[{"fields": ["a"]}, {"rename": {"a": "b"}}]
        )
        assert len(TransformPipeline.from_endpoint(single)) == 1
        assert len(TransformPipeline.from_endpoint(multi)) == 2
