"""Minimal Flask API for solving Klondike deals and reading batch results."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from flask import Flask, jsonify, request

from klondike.cards import shuffled_deck
from klondike.decks import DeckError, parse_deck_list, validate_deck
from klondike.search import SearchConfig, solve
from klondike.stats import ResultsError, load_results

DATA_DIR = Path("data")
RESULTS_PATH = DATA_DIR / "results.parquet"

# Upper bounds for requests; batch jobs should go through scripts/batch.py.
MAX_REQUEST_NODES = 1_000_000
MAX_REQUEST_DEPTH = 1_000

app = Flask(__name__)


def _parse_deck(payload: Dict[str, Any]) -> tuple[str, tuple[int, ...]]:
    deck = payload.get("deck")
    seed = payload.get("seed")
    if deck is not None and seed is not None:
        raise ValueError("Provide either deck or seed, not both")
    if deck is not None:
        if isinstance(deck, str):
            return "deck", parse_deck_list(deck)
        if isinstance(deck, list):
            return "deck", validate_deck(deck)
        raise ValueError(f"deck has invalid type: {type(deck).__name__}")
    if seed is not None:
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise ValueError(f"seed has invalid type: {type(seed).__name__}")
        return f"seed:{seed}", tuple(shuffled_deck(seed))
    raise ValueError("Missing field: deck or seed")


def _validate_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    label, deck = _parse_deck(payload)
    try:
        config = SearchConfig.from_dict(
            {key: payload[key] for key in ("max_nodes", "max_depth") if key in payload}
        )
    except TypeError as exc:
        raise ValueError(str(exc)) from exc
    if config.limits.max_nodes > MAX_REQUEST_NODES:
        raise ValueError(f"max_nodes must not exceed {MAX_REQUEST_NODES}")
    if config.limits.max_depth > MAX_REQUEST_DEPTH:
        raise ValueError(f"max_depth must not exceed {MAX_REQUEST_DEPTH}")
    return {"label": label, "deck": deck, "config": config}


@app.post("/api/solve")
def solve_deal():
    payload = request.get_json(silent=True) or {}
    try:
        cleaned = _validate_payload(payload)
    except (DeckError, ValueError) as exc:
        response = {"error": str(exc)}
        return jsonify(response), 400

    outcome = solve(cleaned["deck"], cleaned["config"])
    return jsonify(
        {
            "label": cleaned["label"],
            "limits": cleaned["config"].to_dict(),
            "outcome": outcome.to_dict(),
        }
    )


@app.get("/api/results/<label>")
def get_results(label: str):
    if not RESULTS_PATH.exists():
        return jsonify({"error": "results unavailable"}), 404
    try:
        frame = load_results(RESULTS_PATH)
    except ResultsError as exc:
        return jsonify({"error": str(exc)}), 400

    subset = frame[frame["label"].astype(str) == label]
    if subset.empty:
        return jsonify({"error": "deal not found"}), 404

    # Round-trip through pandas JSON to get native types and null for NaN.
    result = json.loads(subset.to_json(orient="records"))
    return jsonify({"label": label, "results": result})


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    app.run(host="0.0.0.0", port=5000, debug=True)
