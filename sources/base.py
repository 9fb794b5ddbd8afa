#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base classes for metadata resolvers.
Both resolvers (AcoustID, MusicBrainz) inherit from this.
"""

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class LookupStatus(Enum):
    """Terminal status of a resolver lookup"""
    OK = "ok"
    NETWORK = "network"
    REMOTE_REJECTED = "remote_rejected"
    PARSE_FAILURE = "parse_failure"


@dataclass
class ResolverResult:
    """Result of a single lookup: a status plus the payload when OK"""
    status: LookupStatus
    payload: Any = None

    @property
    def ok(self) -> bool:
        return self.status == LookupStatus.OK

    @classmethod
    def success(cls, payload: Any) -> "ResolverResult":
        return cls(LookupStatus.OK, payload)

    @classmethod
    def failure(cls, status: LookupStatus) -> "ResolverResult":
        return cls(status)


class FetchError(Exception):
    """Transport-level failure (timeout, DNS, TLS, or a rejected non-2xx reply)"""


class HttpFetch(ABC):
    """
    Synchronous GET capability used by the resolvers.

    Implementations raise FetchError on any transport failure. A non-2xx
    reply is one too, unless get_text() is called with
    raise_for_status=False: the body is then returned as is.
    """

    @abstractmethod
    def get_text(self, url: str, headers: Optional[Dict[str, str]] = None,
                 raise_for_status: bool = True) -> str:
        """GET url and return the body as text"""
        pass

    @abstractmethod
    def download(self, url: str, path: str, headers: Optional[Dict[str, str]] = None) -> None:
        """GET url and write the binary body to path"""
        pass


def should_throttle(count: int, ceiling: int) -> bool:
    """True once the requests issued since the last reset reach the ceiling"""
    return count >= ceiling


class RateLimiterState:
    """
    Request counter shared by every resolver of one type.

    Two flavours:
    - ceiling-then-reset (windowed=False): once `ceiling` requests have
      been issued, always block for one window and reset.
    - windowed (windowed=True): once the ceiling is hit, block only if the
      last request was issued less than one window ago, then reset.
    """

    def __init__(
        self,
        ceiling: int,
        window: float = 1.0,
        windowed: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.ceiling = ceiling
        self.window = window
        self.windowed = windowed
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self.count = 0
        self.last_request: Optional[float] = None

    def wait(self) -> None:
        """Block before issuing a request if the ceiling has been reached"""
        with self._lock:
            if not should_throttle(self.count, self.ceiling):
                return
            if self.windowed and self.last_request is not None:
                elapsed = self._clock() - self.last_request
                if elapsed <= self.window:
                    self._sleep(self.window)
            else:
                self._sleep(self.window)
            self.count = 0

    def record(self) -> None:
        """Count a request that reached the service"""
        with self._lock:
            self.count += 1
            self.last_request = self._clock()

    def reset(self) -> None:
        with self._lock:
            self.count = 0
            self.last_request = None

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(ceiling={self.ceiling}, window={self.window}, "
                f"windowed={self.windowed}, count={self.count})")


class Resolver(ABC):
    """
    Abstract base class for one-shot metadata lookups.

    A resolver is built for a single target (fingerprint or release id),
    performs one lookup and keeps its terminal status. Rate-limit state
    lives on the class so every instance of a resolver type shares it.
    """

    limiter: RateLimiterState

    def __init__(self, fetch: Optional[HttpFetch] = None, limiter: Optional[RateLimiterState] = None):
        if fetch is None:
            from .http import RequestsFetch
            fetch = RequestsFetch()
        self.fetch = fetch
        if limiter is not None:
            self.limiter = limiter
        self.status = LookupStatus.REMOTE_REJECTED

    @property
    @abstractmethod
    def name(self) -> str:
        """Resolver name identifier"""
        pass

    @abstractmethod
    def lookup(self) -> ResolverResult:
        """Run the lookup; never raises"""
        pass

    def _finish(self, status: LookupStatus, payload: Any = None) -> ResolverResult:
        self.status = status
        if status != LookupStatus.OK:
            self.log(f"Lookup failed: {status.value}")
        return ResolverResult(status, payload)

    @staticmethod
    def _parse_json(body: str) -> Optional[Dict[str, Any]]:
        """Parse a JSON object body, None if malformed or not an object"""
        try:
            data = json.loads(body)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _get_str(data: Any, key: str, default: str = "") -> str:
        """Field present and a string, else the default"""
        if isinstance(data, dict):
            value = data.get(key)
            if isinstance(value, str):
                return value
        return default

    def log(self, message: str) -> None:
        """Log a message"""
        print(f"[{self.name}] {message}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status.value})"
