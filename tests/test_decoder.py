"""Tests for hooktrigger.core.decoder — content-negotiated response decoding."""
import json

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))


def _result(status=200, body=None, ctype=None):
    from hooktrigger.core.models import InvocationResult
    return InvocationResult(status_code=status, raw_body=body, content_type=ctype)


class TestDecode:
    def test_null_body(self):
        from hooktrigger.core.decoder import decode
        from hooktrigger.core.models import Output
        assert decode(_result(202, None, "application/json")) == Output(202, None)

    def test_json(self):
        from hooktrigger.core.decoder import decode
        out = decode(_result(200, b'{"keyOne": "valueOne"}', "application/json; charset=utf-8"))
        assert out.body == {"keyOne": "valueOne"}

    def test_json_list(self):
        from hooktrigger.core.decoder import decode
        assert decode(_result(200, b"[1, 2]", "application/json")).body == [1, 2]

    def test_text(self):
        from hooktrigger.core.decoder import decode
        out = decode(_result(200, b"Webhook triggered successfully", "text/plain"))
        assert out.body == "Webhook triggered successfully"

    def test_no_content_type_is_text(self):
        from hooktrigger.core.decoder import decode
        assert decode(_result(200, b'{"a": 1}', None)).body == '{"a": 1}'

    def test_invalid_json_raises(self):
        from hooktrigger.core.decoder import decode
        from hooktrigger.core.errors import DecodingError
        with pytest.raises(DecodingError):
            decode(_result(200, b"<html>oops</html>", "application/json"))

    def test_empty_json_body_is_null(self):
        from hooktrigger.core.decoder import decode
        assert decode(_result(200, b"", "application/json")).body is None

    def test_invalid_utf8_text_raises(self):
        from hooktrigger.core.decoder import decode
        from hooktrigger.core.errors import DecodingError
        with pytest.raises(DecodingError):
            decode(_result(200, b"\xff\xfe", "text/plain"))

    @pytest.mark.parametrize("status", [201, 400, 404, 500])
    def test_non_success_status_passes_through(self, status):
        from hooktrigger.core.decoder import decode
        out = decode(_result(status, b"nope", "text/plain"))
        assert out.status_code == status
        assert out.body == "nope"

    def test_inline_payload_round_trip(self):
        from hooktrigger.core.decoder import decode
        from hooktrigger.core.models import RequestSpec
        from hooktrigger.request.assembler import assemble
        req = assemble(RequestSpec("http://n8n.local/webhook/x", "POST", body={"a": 1}))
        out = decode(_result(200, req.content, req.header("Content-Type")))
        assert out.body == {"a": 1}

    def test_output_to_dict(self):
        from hooktrigger.core.decoder import decode
        from hooktrigger.core.models import InvocationResult
        result = InvocationResult(status_code=200, raw_body=b'{"x": 1}',
                                  headers={"content-type": ["application/json"]},
                                  content_type="application/json", attempts=2, elapsed=2.5)
        data = decode(result, workflow_url="http://n8n.local/webhook/x").to_dict()
        assert data["statusCode"] == 200
        assert data["body"] == {"x": 1}
        assert data["attempts"] == 2
        assert data["durationMs"] == 2500
        assert data["workflowUrl"] == "http://n8n.local/webhook/x"
        json.dumps(data)
