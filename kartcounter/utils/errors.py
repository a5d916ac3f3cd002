# kartcounter/utils/errors.py
class CounterError(Exception):
    """기본 카운터 예외 베이스"""

    pass


class ConfigError(CounterError):
    """설정/CLI 값 관련 오류"""

    pass


class DiscoveryError(CounterError):
    """마스터 서버(HTTP) 조회 실패 - 실행 전체를 중단"""

    pass


class NetworkError(CounterError):
    """네트워크/소켓 관련 오류"""

    pass


class TransportError(NetworkError):
    """단일 프로브의 dial/send/recv/timeout 실패"""

    pass


class ProtocolError(CounterError):
    """잘못된/길이가 부족한 패킷"""

    pass
