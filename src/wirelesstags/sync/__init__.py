"""Sync engine for wireless tag metrics.

Modules:
    watermark    — Lower-bound adjustment from tag last-communication times
    partition    — Group tag ids by metric kind for batched requests
    merge        — Expand day/offset stat groups into timestamp buckets
    orchestrator — One full catalog + metrics cycle
    scheduler    — Successive cycles on an interval
"""
