"""Localized status messages for the batch converter."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

DEFAULT_LOCALE = "en-US"

MESSAGES: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {
        "zh-CN": MappingProxyType(
            {
                "title": "链接转附件",
                "urlLabel": "附件下载地址",
                "placeholderUrl": "请输入附件下载地址",
                "errorEmptyInput": "输入不能为空",
                "errorNoUrl": "未找到有效的链接",
                "convertSuccess": "链接转换成功",
                "convertFailed": "链接转换失败",
            }
        ),
        "en-US": MappingProxyType(
            {
                "title": "Link to Attachment",
                "urlLabel": "Attachment download address",
                "placeholderUrl": "Please enter the attachment download address",
                "errorEmptyInput": "Input cannot be empty",
                "errorNoUrl": "No valid links found",
                "convertSuccess": "Link conversion successful",
                "convertFailed": "Link conversion failed",
            }
        ),
        "ja-JP": MappingProxyType(
            {
                "title": "リンクから添付ファイルへ",
                "urlLabel": "添付ファイルのダウンロードアドレス",
                "placeholderUrl": "添付ファイルのダウンロードアドレスを入力",
                "errorEmptyInput": "入力が空です",
                "errorNoUrl": "有効なリンクが見つかりません",
                "convertSuccess": "リンク変換成功",
                "convertFailed": "リンク変換失敗",
            }
        ),
    }
)

SUPPORTED_LOCALES = tuple(MESSAGES)


def normalize_locale(locale: str | None) -> str:
    """Map ``zh_cn``, ``ja`` and similar spellings onto a catalogue key."""

    if not locale:
        return DEFAULT_LOCALE
    text = locale.strip().replace("_", "-")
    for known in SUPPORTED_LOCALES:
        if known.lower() == text.lower():
            return known
    language = text.split("-", 1)[0].lower()
    for known in SUPPORTED_LOCALES:
        if known.split("-", 1)[0].lower() == language:
            return known
    return DEFAULT_LOCALE


def translate(key: str, locale: str | None = None) -> str:
    """Return the message for ``key``, falling back to en-US and then the key."""

    catalogue = MESSAGES[normalize_locale(locale)]
    if key in catalogue:
        return catalogue[key]
    return MESSAGES[DEFAULT_LOCALE].get(key, key)


__all__ = ("DEFAULT_LOCALE", "MESSAGES", "SUPPORTED_LOCALES", "normalize_locale", "translate")
