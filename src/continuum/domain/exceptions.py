"""Domain exceptions."""


class ContinuumError(Exception):
    """ドメイン例外の基底クラス"""


class ConversationNotFoundError(ContinuumError):
    """会話が存在しない場合に発生する例外"""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} not found")


class ConversationNotActiveError(ContinuumError):
    """アクティブでない会話を延長しようとした場合に発生する例外"""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} is not active")


class ActiveConversationConflictError(ContinuumError):
    """同一セッションにアクティブな会話を二重に作成しようとした場合の例外

    並行する作成処理と競合した場合に発生する。呼び出し側は再試行できる。
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} already has an active conversation")


class SessionNotFoundError(ContinuumError):
    """セッションが存在しない場合に発生する例外"""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class MessageNotFoundError(ContinuumError):
    """指定セッション内にメッセージが存在しない場合に発生する例外"""

    def __init__(self, message_id: str, session_id: str) -> None:
        self.message_id = message_id
        self.session_id = session_id
        super().__init__(f"Message {message_id} not found in session {session_id}")


class TenantMismatchError(ContinuumError):
    """テナント境界をまたぐ操作を行おうとした場合に発生する例外"""

    def __init__(self, expected_tenant_id: str, actual_tenant_id: str) -> None:
        self.expected_tenant_id = expected_tenant_id
        self.actual_tenant_id = actual_tenant_id
        super().__init__(
            f"Tenant mismatch: expected {expected_tenant_id}, got {actual_tenant_id}"
        )
