#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
requests-based HTTP transport for the resolvers.
"""

from typing import Dict, Optional

import requests

from .base import FetchError, HttpFetch


class RequestsFetch(HttpFetch):
    """
    HttpFetch backed by a requests.Session.

    Redirects are followed. Connection, timeout and TLS errors are raised
    as FetchError; so is a non-2xx status unless the caller asked for the
    error body instead.
    """

    def __init__(self, timeout: float = 30, headers: Optional[Dict[str, str]] = None):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if headers:
            self.session.headers.update(headers)

    def _get(self, url: str, headers: Optional[Dict[str, str]],
             raise_for_status: bool = True) -> requests.Response:
        try:
            response = self.session.get(
                url,
                headers=headers,
                timeout=self.timeout,
                allow_redirects=True
            )
            if raise_for_status:
                response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(str(e)) from e
        return response

    def get_text(self, url: str, headers: Optional[Dict[str, str]] = None,
                 raise_for_status: bool = True) -> str:
        return self._get(url, headers, raise_for_status).text

    def download(self, url: str, path: str, headers: Optional[Dict[str, str]] = None) -> None:
        response = self._get(url, headers)
        with open(path, 'wb') as f:
            f.write(response.content)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(timeout={self.timeout})"
