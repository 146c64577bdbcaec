from __future__ import annotations

from prometheus_client import Counter

completions_total = Counter(
    "relay_completions_total", "Completion calls by endpoint and outcome", ["endpoint", "outcome"]
)
fallbacks_total = Counter(
    "relay_fallbacks_total", "Responses built from the deterministic fallback", ["endpoint"]
)
price_cache_total = Counter("relay_price_cache_total", "Price cache lookups", ["result"])
link_probes_total = Counter("relay_link_probes_total", "Cancel link probes by verdict", ["status"])
