"""Core (UI-agnostic) GVA dashboard logic.

This package contains:
- the embedded dataset and its normalization into an immutable snapshot
- selection state and record filtering
- table / chart projections (plain dataclasses, JSON-serializable)
- chart helpers (Altair -> Vega-Lite spec dict)
- year playback, insight requests, CSV export
"""
