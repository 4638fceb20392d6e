"""Explicit new-conversation intent detection."""

import re

# 小文字化・前後空白除去後のメッセージに対して検索する
NEW_CONVERSATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"new (conversation|convo|topic|subject|chat)"),
    re.compile(r"move on"),
    re.compile(r"change (the )?(subject|topic)"),
    re.compile(r"let'?s talk about something else"),
    re.compile(r"start (a )?(new|fresh)"),
    re.compile(r"different (topic|subject)"),
    re.compile(r"anyway[,.]?\s"),
    re.compile(r"^(ok|okay|alright|so)\s*,?\s*(new topic|next|moving on)"),
)


def detect_new_conversation_intent(message: str) -> bool:
    """ユーザーが明示的に話題の切り替えを求めているか判定する

    "new topic please" や "anyway, ..." のような定型表現を検出する。
    分類器を呼ばずに会話を分割するための判定で、誤検出より見逃しを許容する。

    Args:
        message: ユーザーメッセージ本文

    Returns:
        話題の切り替えを求めている場合 True
    """
    text = message.lower().strip()
    if not text:
        return False
    return any(pattern.search(text) for pattern in NEW_CONVERSATION_PATTERNS)
