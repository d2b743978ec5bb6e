"""
Shared fixtures: small inline rule tables and real-world User-Agents.
"""

import copy

import pytest

from device_sense.detection.pipeline import DetectionPipeline
from device_sense.rules.loader import RuleSet


IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_5 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.5 Mobile/15E148 Safari/604.1"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 15_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/15.4 Mobile/15E148 Safari/604.1"
)
GALAXY_TAB_UA = (
    "Mozilla/5.0 (Linux; Android 12; SM-T870) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/112.0.0.0 Safari/537.36"
)
GALAXY_PHONE_UA = (
    "Mozilla/5.0 (Linux; Android 13; SM-G991B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/112.0.0.0 Mobile Safari/537.36"
)
ANDROID_GENERIC_UA = (
    "Mozilla/5.0 (Linux; Android 11; moto g(30)) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Mobile Safari/537.36"
)
WINDOWS_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36"
)
OPERA_MINI_UA = "Opera/9.80 (J2ME/MIDP; Opera Mini/5.1.21214/28.2725; U; en) Presto/2.8.119 Version/11.10"
OPERA_PRESTO_UA = "Opera/9.80 (Windows NT 6.1; WOW64) Presto/2.12.388 Version/12.16"
NOKIA_UA = "NokiaN95/20.0.015 Profile/MIDP-2.0 Configuration/CLDC-1.1"
CURL_UA = "curl/8.1.2"


SAMPLE_TABLES = {
    "phones": {
        "iPhone": {"type": "strpos", "match": "iPhone", "vendor": "Apple"},
        "GalaxyPhone": {"match": r"SM-G\d{3}", "vendor": "Samsung", "modelMatch": ["SM-[MODEL]"]},
        "Nokia": {
            "type": "stripos",
            "match": "nokia",
            "vendor": "Nokia",
            "modelMatch": ["Nokia ?[MODEL]", "Nokia ?[a-zA-Z0-9]+/[VER]"],
        },
    },
    "tablets": {
        "iPad": {"type": "strpos", "match": "iPad", "vendor": "Apple"},
        "GalaxyTab": {"match": r"SM-T\d{3}", "vendor": "Samsung", "modelMatch": ["SM-[MODEL]"]},
    },
    "operating_systems": {
        "ios": {
            "iOS": {"match": "iPhone|iPad", "isMobile": True, "versionMatch": ["OS [VER]"]},
        },
        "android": {
            "Android": {"match": "Android", "isMobile": True, "versionMatch": ["Android [VER]"]},
        },
        "windows": {
            "Windows": {
                "type": "stripos",
                "match": "windows nt",
                "isMobile": False,
                "versionMatch": ["Windows NT [VER]"],
            },
        },
        "unknown": {
            "Unknown": {"match": ".*", "isMobile": False},
        },
    },
    "browsers": {
        "opera": {
            "Opera Mini": {
                "type": "stripos",
                "match": "opera mini",
                "isMobile": True,
                "versionMatch": ["Opera Mini/[VER]"],
            },
        },
        "chrome": {
            "Chrome": {"match": "Chrome/", "isMobile": False, "versionMatch": ["Chrome/[VER]"]},
        },
        "safari": {
            "Safari": {"type": "strpos", "match": "Safari/", "isMobile": False, "versionMatch": ["Version/[VER]"]},
        },
        "unknown": {
            "Unknown": {"match": ".*", "isMobile": False},
        },
    },
}


@pytest.fixture
def sample_tables():
    """A private, mutable copy of the inline tables."""
    return copy.deepcopy(SAMPLE_TABLES)


@pytest.fixture
def sample_rules(sample_tables):
    return RuleSet.from_dict(sample_tables, source="<tests>")


@pytest.fixture
def pipeline(sample_rules):
    return DetectionPipeline(sample_rules)


@pytest.fixture
def default_pipeline():
    return DetectionPipeline(RuleSet.default())
