"""Tests for candidate extraction."""

import pytest

from phisheye.constants import Surface
from phisheye.engine import (
    CandidateKind,
    candidate_from_navigation,
    candidate_from_text,
    candidate_from_transcript,
    download_candidate,
    extract_url,
    file_extension,
    same_candidate,
    url_candidate,
)
from phisheye.errors import ExtractionMiss


class TestExtractUrl:
    def test_first_url_in_text(self):
        text = "Your account is locked, see https://evil.tk/login. Or http://other.ml"
        assert extract_url(text) == "https://evil.tk/login"

    def test_www_form_gets_scheme(self):
        assert extract_url("go to www.example.com now") == "https://www.example.com"

    def test_trailing_punctuation_stripped(self):
        assert extract_url("(see https://example.com/a)") == "https://example.com/a"

    def test_plain_http_kept(self):
        assert extract_url("http://example.com") == "http://example.com"

    @pytest.mark.parametrize("text", ["", "   ", "no links here", "visit example.com"])
    def test_miss(self, text):
        with pytest.raises(ExtractionMiss):
            extract_url(text)

    def test_bare_domain_when_allowed(self):
        assert extract_url("visit example.com", allow_bare_domains=True) == "https://example.com"

    def test_miss_is_lookup_error(self):
        with pytest.raises(LookupError):
            extract_url("nothing")


class TestFileExtension:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("Setup.EXE", "exe"),
            ("archive.tar.gz", "gz"),
            ("README", "unknown"),
            ("file.", "unknown"),
            ("", "unknown"),
        ],
    )
    def test_file_extension(self, filename, expected):
        assert file_extension(filename) == expected


class TestCandidates:
    def test_url_candidate_keeps_case(self):
        candidate = url_candidate("  https://Example.com/Path ", Surface.MANUAL.value)
        assert candidate.kind is CandidateKind.URL
        assert candidate.display_text == "https://Example.com/Path"
        assert candidate.text == "https://example.com/path"
        assert candidate.origin_surface == "manual"

    def test_download_candidate(self):
        candidate = download_candidate("invoice.exe", "https://example.com/invoice.exe", "download")
        assert candidate.kind is CandidateKind.FILE_DOWNLOAD
        assert candidate.primary_text == "invoice.exe"
        assert candidate.aux_text == "https://example.com/invoice.exe"

    def test_download_name_from_url(self):
        candidate = download_candidate("", "https://example.com/files/setup.exe", "download")
        assert candidate.primary_text == "setup.exe"

    def test_download_without_anything(self):
        candidate = download_candidate("", "", "download")
        assert candidate.primary_text == "unknown"
        assert candidate.aux_text is None

    def test_candidate_from_text(self):
        candidate = candidate_from_text("copied: https://bit.ly/abc", Surface.CLIPBOARD.value)
        assert candidate.primary_text == "https://bit.ly/abc"
        assert candidate.origin_surface == "clipboard"

    def test_transcript_accepts_bare_domain(self):
        candidate = candidate_from_transcript("please open paypal-verification.com for me")
        assert candidate.primary_text == "https://paypal-verification.com"
        assert candidate.origin_surface == Surface.VOICE.value

    def test_navigation_target(self):
        candidate = candidate_from_navigation("http://secure-update.tk")
        assert candidate.primary_text == "http://secure-update.tk"
        assert candidate.origin_surface == Surface.NAVIGATION.value


class TestSameCandidate:
    def test_none_never_matches(self):
        assert not same_candidate(None, url_candidate("https://a.com", "clipboard"))

    def test_case_and_whitespace_ignored(self):
        assert same_candidate(" HTTPS://A.com ", url_candidate("https://a.com", "clipboard"))

    def test_different_text(self):
        assert not same_candidate("https://a.com", url_candidate("https://b.com", "clipboard"))
