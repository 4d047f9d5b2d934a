"""Prometheus metric definitions for the adsmith pipeline."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# --- Collaborators ---

collaborator_calls_total = Counter(
    "adsmith_collaborator_calls_total",
    "Calls made to external collaborator services",
    labelnames=["service", "operation", "status"],
)

# --- Pipeline stages ---

stage_duration_seconds = Histogram(
    "adsmith_stage_duration_seconds",
    "Time spent in a pipeline stage",
    labelnames=["stage"],
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, 300, 600),
)

research_records_total = Counter(
    "adsmith_research_records_total",
    "Research records produced by extraction",
    labelnames=["kind"],
)

# --- LLM tokens ---

llm_tokens_total = Counter(
    "adsmith_llm_tokens_total",
    "Total LLM tokens consumed",
    labelnames=["model", "token_type"],
)
