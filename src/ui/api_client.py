"""HTTP client wrapper for the Action Extractor FastAPI backend."""

from __future__ import annotations

import os

import httpx
import streamlit as st

API_URL = os.getenv("API_URL", "http://localhost:8000")


def check_health() -> bool:
    """Return True if the API server responds to /health."""
    try:
        r = httpx.get(f"{API_URL}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.ConnectError:
        return False


def _error_detail(response: httpx.Response) -> str:
    """Pull FastAPI's ``detail`` out of an error response, if present."""
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text or f"HTTP {response.status_code}"


def extract_actions(text: str) -> dict:  # type: ignore[type-arg]
    """Send notes to the extraction endpoint and return the JSON result."""
    try:
        r = httpx.post(f"{API_URL}/api/extract", json={"text": text}, timeout=60.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPStatusError as e:
        st.error(f"Extraction failed: {_error_detail(e.response)}")
        return {}
    except httpx.HTTPError as e:
        st.error(f"Extraction failed: {e}")
        return {}
