import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

with open(ROOT / "local.settings.json") as f:
    for key, value in json.load(f).get("Values", {}).items():
        os.environ.setdefault(key, str(value))

from function_app.shared import config  # noqa: E402


@pytest.mark.parametrize("raw, expected", [
    ("", None),
    ("   ", None),
    ("5", 5.0),
    (" 7 ", 7.0),
    ("2.5", 2.5),
    ("0", None),
    ("-3", None),
    ("abc", None),
])
def test_upstream_timeout(raw, expected):
    with patch.dict(os.environ, {"UPSTREAM_TIMEOUT_SEC": raw}):
        assert config.upstream_timeout() == expected


@pytest.mark.parametrize("raw, expected", [
    ("65536", 65536),
    ("131072", 131072),
    ("100", 1024),
    ("-5", 1024),
    ("", 65536),
    ("abc", 65536),
])
def test_chunk_bytes(raw, expected):
    with patch.dict(os.environ, {"RELAY_CHUNK_BYTES": raw}):
        assert config.chunk_bytes() == expected
