import os
import requests

# Prefer BACKEND_URL, fall back to BACKEND_BASE_URL, then localhost
BACKEND_URL = (
    os.getenv("BACKEND_URL")
    or os.getenv("BACKEND_BASE_URL")
    or "http://localhost:8000"
)


def post_render(payload):
    """Plot a dataset on the backend and get the scene at the cursor."""
    url = f"{BACKEND_URL}/v1/timechart/render"
    response = requests.post(url, json=payload)
    response.raise_for_status()
    return response.json()


def post_tooltip(payload):
    """Get the tooltip rows at an index (or pixel) for a dataset."""
    url = f"{BACKEND_URL}/v1/timechart/tooltip"
    response = requests.post(url, json=payload)
    response.raise_for_status()
    return response.json()
