"""Strategy Selector tests against the packaged provider table."""

import pytest

from LinkAttach.FormatResolution.classifications import DetectionMethod
from LinkAttach.FormatResolution.config import load_provider_table
from LinkAttach.FormatResolution.strategy import DEFAULT_POLICY, StrategySelector
from LinkAttach.FormatResolution.types import ProviderPolicy


@pytest.fixture
def selector():
    return StrategySelector(load_provider_table())


def test_packaged_category_order():
    names = [policy.name for policy in load_provider_table()]
    assert names == ["video_cdn", "code_hosting", "image_cdn", "object_storage", "generic_cdn"]


@pytest.mark.parametrize(
    "host,expected",
    [
        ("vod.aliyuncs.com", "video_cdn"),
        ("outin-1.vod.aliyuncs.com", "video_cdn"),
        ("raw.githubusercontent.com", "code_hosting"),
        ("cdn.jsdelivr.net", "code_hosting"),
        ("img-cn-hangzhou.aliyuncs.com", "image_cdn"),
        ("wx1.sinaimg.cn", "image_cdn"),
        ("bucket.oss-cn-beijing.aliyuncs.com", "object_storage"),
        ("my-bucket.s3.amazonaws.com", "object_storage"),
        ("d111111abcdef8.cloudfront.net", "generic_cdn"),
        ("example.org", "default"),
        ("aliyuncs.com.evil.example", "default"),
    ],
)
def test_first_match_wins(selector, host, expected):
    assert selector.select(host).name == expected


def test_default_policy_shape():
    assert DEFAULT_POLICY.primary_method is DetectionMethod.CONTENT_TYPE
    assert DEFAULT_POLICY.fallback_method is DetectionMethod.URL_EXTENSION
    assert DEFAULT_POLICY.category_confidence == pytest.approx(0.8)


def test_rule_order_is_respected():
    broad = ProviderPolicy(
        name="broad",
        match_domains=frozenset({"example.com"}),
        primary_method=DetectionMethod.CONTENT_TYPE,
        fallback_method=DetectionMethod.CONTENT_SNIFF,
        category_confidence=0.5,
    )
    narrow = ProviderPolicy(
        name="narrow",
        match_domains=frozenset({"img.example.com"}),
        primary_method=DetectionMethod.CONTENT_SNIFF,
        fallback_method=DetectionMethod.URL_EXTENSION,
        category_confidence=0.9,
    )
    assert StrategySelector([broad, narrow]).select("img.example.com").name == "broad"
    assert StrategySelector([narrow, broad]).select("img.example.com").name == "narrow"


def test_describe_lists_default_last(selector):
    rows = selector.describe()
    assert len(rows) == len(selector) + 1
    assert rows[-1]["name"] == "default"
    assert rows[1]["primary"] == "url_extension"
