import json
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

with open(ROOT / "local.settings.json") as f:
    for key, value in json.load(f).get("Values", {}).items():
        os.environ.setdefault(key, str(value))

from function_app.shared.errors import ExtractionFailed, InvalidSourceURL, MissingParameter  # noqa: E402
from function_app.shared.extract import (  # noqa: E402
    MATCHERS,
    extract_direct_link,
    find_direct_link,
    match_download_button,
    match_script_file_url,
)
from function_app.shared.validate import validate_source_link  # noqa: E402


@pytest.mark.parametrize("value", [None, "", "   "])
def test_validate_rejects_missing_link(value):
    with pytest.raises(MissingParameter) as exc:
        validate_source_link(value)
    assert exc.value.status == 400
    assert exc.value.link is None
    assert exc.value.message


@pytest.mark.parametrize("value", [
    "https://mediafire.com/file/abc/x.zip/file",
    "HTTPS://www.mediafire.com/file/abc/x.zip/file",
    "https://www.MediaFire.com/file/abc/x.zip/file",
    "ftp://www.mediafire.com/file/abc/x.zip/file",
    "https://www.mediafire.com",
    "https://www.mediafire.com.evil.net/file/abc",
    "https://example.com/?u=https://www.mediafire.com/",
])
def test_validate_rejects_foreign_links(value):
    with pytest.raises(InvalidSourceURL) as exc:
        validate_source_link(value)
    assert exc.value.status == 400
    assert exc.value.link == value


@pytest.mark.parametrize("value", [
    "http://www.mediafire.com/file/abc123/video.mp4/file",
    "https://www.mediafire.com/file/abc123/video.mp4/file",
    "https://www.mediafire.com/",
])
def test_validate_returns_link_unchanged(value):
    assert validate_source_link(value) is value


ALL_PATTERNS_PAGE = """
<html><head>
<script>var download_url = "https://download2.mediafire.com/b/second.zip";</script>
<script>window.dl_link = "https://download3.mediafire.com/c/third.zip";</script>
<script>loader("https://download4.mediafire.com/d/fourth.zip");</script>
</head><body>
<a class="input popsok" aria-label="Download file" id="download-button" href="https://download1.mediafire.com/a/first.zip">Download</a>
</body></html>
"""


def test_download_button_wins_over_other_patterns():
    url, matcher = find_direct_link(ALL_PATTERNS_PAGE)
    assert url == "https://download1.mediafire.com/a/first.zip"
    assert matcher == "match_download_button"


def test_download_url_var_used_without_button():
    html = '<script>var download_url = "https://download2.mediafire.com/b/x.rar"; window.dl_link = "https://other/y.zip";</script>'
    assert extract_direct_link(html) == "https://download2.mediafire.com/b/x.rar"


def test_window_dl_link_is_third():
    html = '<script>window.dl_link = "https://download3.mediafire.com/c/x.7z"; go("https://cdn/x.zip")</script>'
    url, matcher = find_direct_link(html)
    assert url == "https://download3.mediafire.com/c/x.7z"
    assert matcher == "match_window_dl_link"


def test_script_url_fallback_only_inside_script():
    html = (
        '<p>https://outside.example/not-this.zip</p>'
        '<script type="text/javascript">\n  cfg.src = \'https://download9.mediafire.com/z/archive.tar.gz\';\n</script>'
    )
    assert match_script_file_url(html) == "https://download9.mediafire.com/z/archive.tar.gz"


def test_script_url_prefers_full_extension():
    html = "<script>f('https://d.mediafire.com/q/report.docx')</script>"
    assert match_script_file_url(html) == "https://d.mediafire.com/q/report.docx"


def test_anchor_matching_is_case_insensitive_and_order_tolerant():
    assert match_download_button('<A HREF="https://d/x.iso" ID="download-button">') == "https://d/x.iso"
    assert match_download_button("<a id='download-button' href='https://d/y.apk'>") == "https://d/y.apk"
    assert match_download_button('<a data-id="download-button" href="https://d/z.apk">') is None
    assert match_download_button('<a id="download-button-2" href="https://d/z.apk">') is None


def test_extract_fails_when_nothing_matches():
    with pytest.raises(ExtractionFailed) as exc:
        extract_direct_link("<html><body>File removed</body></html>", link="https://www.mediafire.com/file/x/file")
    assert exc.value.status == 500
    assert "direct download link" in exc.value.message
    assert exc.value.link == "https://www.mediafire.com/file/x/file"


def test_new_matcher_can_be_appended():
    def match_meta_refresh(html):
        return "https://fallback/x.bin" if "refresh" in html else None

    url, matcher = find_direct_link("<meta http-equiv=refresh>", MATCHERS + (match_meta_refresh,))
    assert url == "https://fallback/x.bin"
    assert matcher == "match_meta_refresh"
