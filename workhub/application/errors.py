"""
Typed failures shared by use cases and routes.

Every error carries a user-safe message; raw provider text goes to the log.
"""


class WorkHubError(Exception):
    status_code = 500
    default_message = "予期しないエラーが発生しました"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(WorkHubError):
    status_code = 401
    default_message = "認証が必要です"


class Forbidden(WorkHubError):
    status_code = 403
    default_message = "権限がありません"


class NotFound(WorkHubError):
    status_code = 404
    default_message = "対象が見つかりません"


class Conflict(WorkHubError):
    status_code = 409
    default_message = "既に処理済みです"


class AlreadyLinkedElsewhere(Conflict):
    default_message = "このLINEアカウントは別のユーザーに連携されています"


class ValidationError(WorkHubError):
    status_code = 400
    default_message = "入力内容が不正です"


class UpstreamFailure(WorkHubError):
    status_code = 502
    default_message = "外部サービスとの通信に失敗しました"


class ConfigurationError(WorkHubError):
    status_code = 503
    default_message = "この機能は現在設定されていません"
