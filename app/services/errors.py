# 참여 엔진 예외. 라우터에서 HTTPException(status_code, message)로 변환.


class ParticipationError(Exception):
    """참여 처리 불가. status_code는 그대로 HTTP 응답 코드로 사용."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ParticipationError):
    """활동 또는 참여 기록 없음."""

    status_code = 404


class BadRequestError(ParticipationError):
    """호스트 본인 참여, 미공개 활동, 중복 참여, 정원 초과 승인, 프로필 없음 등."""

    status_code = 400


class ForbiddenError(ParticipationError):
    """본인/호스트가 아닌 사용자의 취소, 호스트가 아닌 사용자의 승인·명단 조회."""

    status_code = 403


class ConflictError(ParticipationError):
    """동시 요청 충돌로 재시도 횟수 소진. 클라이언트가 요청 전체를 다시 보내면 됨."""

    status_code = 409
