"""Metric definitions for live sessions, presence and the periodic sweeps."""

from __future__ import annotations

from .registry import registry


live_sessions_started_total = registry.counter(
    "live_sessions_started_total",
    "startGroupLive calls, split by whether a new session began or a host re-joined.",
    label_names=("outcome",),
)

live_sessions_stopped_total = registry.counter(
    "live_sessions_stopped_total",
    "stopGroupLive calls, split into deactivations and host failovers.",
    label_names=("outcome",),
)

live_sessions_ended_stale_total = registry.counter(
    "live_sessions_ended_stale_total",
    "Live sessions deactivated because no host heartbeat remained.",
    label_names=("source",),
)

live_tokens_minted_total = registry.counter(
    "live_tokens_minted_total",
    "Media access tokens issued to live session participants.",
    label_names=("role",),
)

reaper_runs_total = registry.counter(
    "reaper_runs_total",
    "Completed sweeps of the periodic reapers.",
    label_names=("job",),
)

reaper_item_failures_total = registry.counter(
    "reaper_item_failures_total",
    "Per-group failures caught during a sweep.",
    label_names=("job",),
)

reaper_last_run_timestamp = registry.gauge(
    "reaper_last_run_timestamp",
    "Unix timestamp of the most recent completed sweep.",
    label_names=("job",),
)

groups_deleted_total = registry.counter(
    "groups_deleted_total",
    "Groups removed by the inactive group sweep.",
)

live_sessions_active = registry.gauge(
    "live_sessions_active",
    "Groups whose live session is currently flagged active.",
)
