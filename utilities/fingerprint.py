#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Chromaprint fingerprinting through the fpcalc binary.
Requires: fpcalc (https://acoustid.org/chromaprint)
"""

import json
import os
import shutil
import subprocess
from typing import Any, Dict, Optional


def log(message: str) -> None:
    print(f"[fpcalc] {message}")


def find_fpcalc() -> Optional[str]:
    """Find fpcalc binary in PATH or common locations"""
    found = shutil.which("fpcalc")
    if found:
        return found

    common_paths = [
        "/usr/local/bin/fpcalc",
        "/opt/homebrew/bin/fpcalc",
        r"C:\Program Files\Chromaprint\fpcalc.exe",
        r"C:\Program Files (x86)\Chromaprint\fpcalc.exe",
    ]

    for path in common_paths:
        if os.path.isfile(path):
            return path

    return None


def generate_fingerprint(audio_path: str, fpcalc_path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Generate audio fingerprint using Chromaprint.

    Args:
        audio_path: Path to audio file
        fpcalc_path: Path to fpcalc (auto-detect if None)

    Returns:
        Dictionary with 'fingerprint' and 'duration' (int seconds), or None
    """
    fpcalc_path = fpcalc_path or find_fpcalc()
    if not fpcalc_path:
        log("Warning: fpcalc not found - install Chromaprint")
        return None

    try:
        result = subprocess.run(
            [fpcalc_path, "-json", audio_path],
            capture_output=True,
            text=True,
            timeout=60
        )
    except subprocess.TimeoutExpired:
        log(f"fpcalc timeout for {audio_path}")
        return None
    except (subprocess.SubprocessError, OSError) as e:
        log(f"fpcalc error: {e}")
        return None

    if result.returncode != 0:
        log(f"fpcalc error: {result.stderr.strip()}")
        return None

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError:
        log("fpcalc returned invalid JSON")
        return None

    if not data.get('fingerprint'):
        return None

    return {
        'fingerprint': data['fingerprint'],
        'duration': int(data.get('duration') or 0)
    }
