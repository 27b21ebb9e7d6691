"""
클라이언트 IP 추출 유틸리티.

프록시나 로드밸런서를 거치는 경우 실제 클라이언트 IP를 추출합니다.
Rate limit 키와 요청 로그에 사용.
"""
from fastapi import Request

# 프록시가 설정하는 헤더 (우선순위 순)
_FORWARDED_IP_HEADERS = ("X-Real-IP", "CF-Connecting-IP", "True-Client-IP")


def get_client_ip(request: Request) -> str:
    """
    요청에서 실제 클라이언트 IP를 추출합니다.

    X-Forwarded-For 의 첫 번째 IP, 그다음 X-Real-IP / CF-Connecting-IP /
    True-Client-IP, 마지막으로 직접 연결 주소를 사용합니다.

    Security:
        이 헤더들은 위조 가능하므로 로드밸런서에서 외부 요청의 헤더를 제거해야 합니다.

    Returns:
        클라이언트 IP 주소, 알 수 없으면 "unknown"
    """
    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        client_ip = x_forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip

    for header in _FORWARDED_IP_HEADERS:
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()

    if request.client:
        return request.client.host

    return "unknown"
