# riskscan/utils/fetch.py
# Upstream call helpers: JSON over HTTP with timeouts, a retry policy and
# ordered fallback strategies. Every failure ends up in the evidence log.
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple, Type

import requests

from riskscan.utils.evidence import EvidenceLog

DEFAULT_TIMEOUT = 15


class UpstreamError(Exception):
    """An upstream answered, but not with something we can use."""


def _dbg(msg: str) -> None:
    print(f"[fetch] {msg}")


def http_get_json(url: str, params: Optional[dict] = None, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """GET and decode JSON. Raises requests.HTTPError on non-2xx."""
    resp = requests.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def http_post_json(url: str, payload: dict, timeout: float = DEFAULT_TIMEOUT) -> Any:
    resp = requests.post(url, json=payload, headers={"content-type": "application/json"}, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def describe_http_error(label: str, exc: Exception) -> str:
    """Short evidence note for a failed HTTP call (status code when we have one)."""
    resp = getattr(exc, "response", None)
    if resp is not None and getattr(resp, "status_code", None) is not None:
        return f"{label} {resp.status_code}"
    return f"{label} error"


@dataclass(frozen=True)
class RetryPolicy:
    """
    max_attempts: upper bound on calls
    backoff_min/backoff_max: random sleep (seconds) between attempts
    retry_on: exception types that count as a retryable failure
    retry_if: predicate on a returned value; True means "try again"
    """
    max_attempts: int = 3
    backoff_min: float = 0.25
    backoff_max: float = 0.65
    retry_on: Tuple[Type[BaseException], ...] = (requests.RequestException, ValueError, UpstreamError)
    retry_if: Callable[[Any], bool] = field(default=lambda result: not result)
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def backoff(self) -> float:
        return random.uniform(self.backoff_min, self.backoff_max)

    def run(
        self,
        fn: Callable[[Any], Any],
        args: Sequence[Any] = (),
        on_error: Optional[Callable[[Any, BaseException], None]] = None,
    ) -> Any:
        """
        Call fn(arg) for successive args (or fn(attempt_index) when no args are given),
        up to max_attempts. Returns the first result that retry_if rejects, else the
        last result (None when every attempt raised).
        """
        plan = list(args) if args else list(range(self.max_attempts))
        plan = plan[: self.max_attempts]
        result = None
        for i, arg in enumerate(plan):
            if i:
                self.sleep(self.backoff())
            try:
                result = fn(arg)
            except self.retry_on as e:
                _dbg(f"attempt {i + 1}/{len(plan)} raised {type(e).__name__}: {e}")
                if on_error is not None:
                    on_error(arg, e)
                result = None
                continue
            if not self.retry_if(result):
                return result
            _dbg(f"attempt {i + 1}/{len(plan)} unusable result; retrying")
        return result


NO_RETRY = RetryPolicy(max_attempts=1)

Strategy = Tuple[str, Callable[[], Any]]


def first_success(strategies: Iterable[Strategy], evidence: EvidenceLog, default: Any = None) -> Any:
    """
    Try (label, fn) pairs in order. The first truthy result wins.
    Exceptions and empty results are recorded under their label and the next
    strategy is tried.
    """
    for label, fn in strategies:
        try:
            result = fn()
        except Exception as e:
            _dbg(f"{label} failed: {type(e).__name__}: {e}")
            evidence.add(f"{label} failed")
            continue
        if result:
            return result
        _dbg(f"{label} returned nothing")
    return default
