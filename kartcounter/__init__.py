"""
SRB2Kart 서버 유저 카운터
- 마스터 서버에서 서버 목록 조회 (HTTP)
- 각 서버에 PT_ASKINFO 프로브 (UDP, 고정 워커 풀)
- 성공 결과를 SQLite 에 저장
"""

__version__ = "1.0.0"
