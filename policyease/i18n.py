"""
User-facing strings in the two supported output languages.
"""

from typing import Dict

from policyease.agent.schemas.analysis import DesignPriority
from policyease.agent.schemas.requests import OutputLanguage

SAMPLE_POLICY_NAME = "中华人民共和国个人信息保护法"

MESSAGES: Dict[OutputLanguage, Dict[str, str]] = {
    OutputLanguage.ZH: {
        "error.generic": "无法找到或分析该政策。请检查名称是否正确，或稍后再试。",
        "error.missing_credential": "AI 服务尚未配置（缺少 API Key），请联系管理员。",
        "snapshot.date": "未注明",
        "snapshot.version_name": "当前文本",
        "snapshot.change_summary": "来源文本为独立快照，未提及自身的修订历史。",
        "language.name": "简体中文",
        "flashcards.count": "第 {current} 张 / 共 {total} 张",
        "flashcards.empty": "暂无记忆卡片",
    },
    OutputLanguage.EN: {
        "error.generic": (
            "Unable to find or analyze this policy. "
            "Please check the name or try again later."
        ),
        "error.missing_credential": (
            "The AI service is not configured (missing API key). "
            "Please contact the administrator."
        ),
        "snapshot.date": "Not stated",
        "snapshot.version_name": "Current text",
        "snapshot.change_summary": (
            "The source is a standalone snapshot and does not reference "
            "its own revision history."
        ),
        "language.name": "English",
        "flashcards.count": "Card {current} of {total}",
        "flashcards.empty": "No flashcards available",
    },
}

PRIORITY_LABELS: Dict[OutputLanguage, Dict[DesignPriority, str]] = {
    OutputLanguage.ZH: {
        DesignPriority.HIGH: "高优先级",
        DesignPriority.MEDIUM: "中优先级",
        DesignPriority.LOW: "低优先级",
        DesignPriority.NONE: "无需系统改动",
    },
    OutputLanguage.EN: {
        DesignPriority.HIGH: "High Priority",
        DesignPriority.MEDIUM: "Medium Priority",
        DesignPriority.LOW: "Low Priority",
        DesignPriority.NONE: "No System Impact",
    },
}


def t(language: OutputLanguage, key: str, **kwargs) -> str:
    text = MESSAGES[OutputLanguage(language)][key]
    return text.format(**kwargs) if kwargs else text


def priority_label(language: OutputLanguage, priority: DesignPriority) -> str:
    return PRIORITY_LABELS[OutputLanguage(language)][DesignPriority(priority)]
