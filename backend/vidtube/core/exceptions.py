# 커스텀 예외 클래스 정의
# 주니어 개발자님께: 서비스 레이어는 HTTPException 대신 아래 예외를 던지고,
# main.py에 등록된 핸들러가 kind/status_code를 보고 HTTP 응답으로 변환합니다.
# 이렇게 하면 서비스 코드를 FastAPI 없이도 테스트할 수 있습니다.

from typing import Optional


class AccountServiceError(Exception):
    """계정 서비스 관련 기본 예외 클래스

    Attributes:
        kind: 에러 분류 (Validation, Conflict, NotFound, Unauthorized, Dependency)
        status_code: 응답에 사용할 HTTP 상태 코드
        message: 사용자에게 보여줄 에러 메시지
    """
    kind = "Internal"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AccountServiceError):
    """입력값 누락/형식 오류. 호출자 책임이므로 재시도하지 않습니다."""
    kind = "Validation"
    status_code = 400


class ConflictError(AccountServiceError):
    """username/email 유니크 제약 위반

    Attributes:
        field: 충돌이 난 필드 이름 ("username" 또는 "email")
    """
    kind = "Conflict"
    status_code = 409

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field.capitalize()} already exists")


class NotFoundError(AccountServiceError):
    kind = "NotFound"
    status_code = 404


class UnauthorizedError(AccountServiceError):
    """인증 실패

    주니어 개발자님께: 메시지에 "비밀번호가 틀렸다", "토큰이 이미 교체되었다" 같은
    내부 사정을 담으면 계정 존재 여부가 노출됩니다. 항상 뭉뚱그린 메시지를 사용하세요.
    """
    kind = "Unauthorized"
    status_code = 401

    def __init__(self, message: str = "Unauthorized request"):
        super().__init__(message)


class TokenExpiredError(UnauthorizedError):
    """서명은 맞지만 만료된 토큰"""


class TokenInvalidError(UnauthorizedError):
    """형식 오류, 위조된 서명, 또는 저장된 값과 일치하지 않는 토큰"""


class DependencyError(AccountServiceError):
    """외부 의존성(blob store, 해싱/서명) 실패. 5xx로 응답하고 운영자 확인용으로 로깅합니다."""
    kind = "Dependency"
    status_code = 500
