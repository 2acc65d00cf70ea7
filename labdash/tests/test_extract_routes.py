import json


def test_extract_returns_normalized_parameters(client, mock_gemini):
    mock_gemini.replies = {
        "model-a": RuntimeError("model not found"),
        "model-b": json.dumps({
            "parameters": [{"parameterName": "LDL-C", "value": "130", "unit": "mg/dL",
                            "normalRange": "<100", "status": "High", "testDate": "2024-01-15"}],
            "labName": "City Lab",
        }),
    }
    r = client.post("/api/extract", files={"file": ("lipid.pdf", b"%PDF-1.4", "application/pdf")})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["modelUsed"] == "model-b"
    assert body["labName"] == "City Lab"
    assert body["documentType"] == "Unknown"
    assert body["parameters"][0]["parameterName"] == "LDL Cholesterol"
    assert body["parameters"][0]["sourceFile"] == "lipid.pdf"
    # nothing is stored by extraction alone
    assert client.get("/api/lab-parameters").json()["parameters"] == []


def test_extract_without_api_key(client):
    r = client.post("/api/extract", files={"file": ("a.png", b"x", "image/png")})
    assert r.status_code == 400
    assert "GEMINI_API_KEY" in r.json()["message"]


def test_extract_empty_file(client, mock_gemini):
    r = client.post("/api/extract", files={"file": ("a.png", b"", "image/png")})
    assert r.status_code == 400
    assert r.json()["message"] == "Empty file"


def test_extract_unsupported_type(client, mock_gemini):
    r = client.post("/api/extract", files={"file": ("a.txt", b"abc", "text/plain")})
    assert r.status_code == 415


def test_extract_too_large(client, mock_gemini, monkeypatch):
    monkeypatch.setattr("labdash.routes.extract_routes.MAX_FILE_MB", 0)
    r = client.post("/api/extract", files={"file": ("a.png", b"abc", "image/png")})
    assert r.status_code == 413


def test_extract_all_models_failed(client, mock_gemini):
    r = client.post("/api/extract", files={"file": ("a.png", b"abc", "image/png")})
    assert r.status_code == 502
    assert r.json()["code"] == "BAD_GATEWAY"
    assert len(mock_gemini.calls) == 2


def test_extract_malformed_reply_includes_raw_text(client, mock_gemini):
    mock_gemini.default = "I could not find any lab values."
    r = client.post("/api/extract", files={"file": ("a.png", b"abc", "image/png")})
    assert r.status_code == 422
    body = r.json()
    assert body["message"] == "Failed to parse AI response"
    assert body["details"]["rawResponse"] == "I could not find any lab values."
    assert r.headers["x-trace-id"] == body["trace_id"]
