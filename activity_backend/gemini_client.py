from __future__ import annotations

import json
import os
from typing import Any

from google import genai
from google.genai import types


def _env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val


class GeminiClient:
    """
    Supports two modes:
    - API key mode (local/dev): GOOGLE_API_KEY or GEMINI_API_KEY
    - Vertex AI mode: GOOGLE_CLOUD_PROJECT + GOOGLE_CLOUD_LOCATION
    """

    FALLBACK_MODELS = ("gemini-2.5-flash", "gemini-2.0-flash")

    def __init__(self) -> None:
        self.model = _env("GEMINI_MODEL", "gemini-2.5-flash")

        api_key = _env("GOOGLE_API_KEY") or _env("GEMINI_API_KEY")
        project = _env("GOOGLE_CLOUD_PROJECT")
        location = _env("GOOGLE_CLOUD_LOCATION", "us-central1")

        if api_key:
            self.client = genai.Client(api_key=api_key)
        elif project:
            # Uses ADC (service account)
            self.client = genai.Client(vertexai=True, project=project, location=location)
        else:
            raise RuntimeError(
                "Missing config: set GOOGLE_API_KEY / GEMINI_API_KEY (local) or GOOGLE_CLOUD_PROJECT (+ optional GOOGLE_CLOUD_LOCATION) (Vertex)."
            )

    def _generate(self, contents: str, config: types.GenerateContentConfig) -> types.GenerateContentResponse:
        candidates: list[str] = [self.model]
        candidates += [m for m in self.FALLBACK_MODELS if m not in candidates]

        last_err: Exception | None = None
        for m in candidates:
            try:
                return self.client.models.generate_content(model=m, contents=contents, config=config)
            except Exception as e:
                last_err = e
                msg = str(e)
                # Only retry on model lookup/access style failures.
                if "NOT_FOUND" in msg and ("not found" in msg or "models/" in msg):
                    continue
                raise
        raise RuntimeError(f"All model candidates failed. Last error: {last_err}")

    def generate_text(self, prompt: str, *, temperature: float = 0.7) -> str:
        resp = self._generate(prompt, types.GenerateContentConfig(temperature=temperature))
        text = (resp.text or "").strip()
        if not text:
            raise RuntimeError("Model returned an empty response.")
        return text

    def generate_json(self, prompt: str, *, schema: dict[str, Any] | None = None, temperature: float = 0.4) -> dict[str, Any]:
        """
        Asks for application/json output; with a schema the SDK hands back the
        parsed object directly.
        """
        resp = self._generate(
            prompt,
            types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
                temperature=temperature,
            ),
        )
        parsed = getattr(resp, "parsed", None)
        if isinstance(parsed, dict):
            return parsed

        text = (resp.text or "").strip()
        return parse_json_object(text)


def parse_json_object(text: str) -> dict[str, Any]:
    """Tolerates ```json fences and prose around the object."""
    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        first = cleaned.find("{")
        last = cleaned.rfind("}")
        if first == -1 or last <= first:
            raise ValueError(f"Model did not return JSON. Raw: {text[:500]}")
        data = json.loads(cleaned[first : last + 1])
    if not isinstance(data, dict):
        raise ValueError(f"Model returned JSON that is not an object. Raw: {text[:500]}")
    return data
