"""
Taste Engine 에러 정의

- NotFoundError: 존재하지 않는 lineage 부모 / dimension ID 참조
- InvalidFormatError: 잘못된 taste pack
- StorageError: 저장소 사용 불가 또는 손상
"""


class TasteEngineError(Exception):
    """Taste Engine 기본 예외"""


class NotFoundError(TasteEngineError):
    """참조 대상 없음"""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class InvalidFormatError(TasteEngineError):
    """taste pack 형식 오류"""


class StorageError(TasteEngineError):
    """저장소 읽기/쓰기 실패"""
