# truthdare/errors.py


class TruthDareError(Exception):
    """ゲームコアが送出する例外の基底クラス"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(TruthDareError):
    """部屋・プレイヤー・お題などが存在しない"""


class ValidationError(TruthDareError):
    """空のニックネーム／回答、開始済みの部屋への参加、手番違いなど"""


class StoreError(TruthDareError):
    """ストア操作そのものが失敗した"""


class NoPromptsAvailable(TruthDareError):
    """指定タイプのお題がカタログに1件もない"""
