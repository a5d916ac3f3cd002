import asyncio
import aiohttp
from typing import List, Optional

from kartcounter.core.models import DEFAULT_MASTER_URL
from kartcounter.utils.addr import format_address
from kartcounter.utils.errors import DiscoveryError
from kartcounter.utils.log import get_logger

log = get_logger("master_server")

API_PARAMS = {"v": "2"}


def parse_version(body: str) -> int:
    try:
        return int(body.strip())
    except ValueError:
        raise DiscoveryError(f"unparsable version body: {body[:64]!r}") from None


def parse_server_list(body: str) -> List[str]:
    """
    "<address> <port>" 줄 목록 → ["<address>:<port>", ...]
    빈 줄은 건너뜀, 형식이 다른 줄은 DiscoveryError
    """
    servers = []
    for lineno, line in enumerate(body.splitlines(), 1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) < 2:
            raise DiscoveryError(f"malformed server line {lineno}: {line!r}")
        servers.append(format_address(parts[0], parts[1]))
    return servers


class MasterServerClient:
    def __init__(self, base_url: str = DEFAULT_MASTER_URL, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def _get_text(self, url: str) -> str:
        session = await self._get_session()
        try:
            async with session.get(url, params=API_PARAMS) as response:
                if response.status != 200:
                    raise DiscoveryError(f"GET {url}: status code {response.status}")
                body = await response.read()
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DiscoveryError(f"GET {url}: undecodable body: {e}") from e
        # aiohttp 클라이언트 오류 / 타임아웃
        except aiohttp.ClientError as e:
            raise DiscoveryError(f"GET {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise DiscoveryError(f"GET {url}: timed out after {self.timeout}s") from e

    async def fetch_version(self) -> int:
        return parse_version(await self._get_text(f"{self.base_url}/version"))

    async def fetch_server_list(self, version: int) -> List[str]:
        return parse_server_list(await self._get_text(f"{self.base_url}/{version}/servers"))

    async def discover(self) -> List[str]:
        try:
            version = await self.fetch_version()
            log.info("master server version: %d", version)
            servers = await self.fetch_server_list(version)
            log.info("master server listed %d servers", len(servers))
            return servers
        finally:
            await self.close_session()

    async def close_session(self):
        if self._session and not self._session.closed:
            await self._session.close()


def discover_servers(base_url: str = DEFAULT_MASTER_URL, timeout: float = 10.0) -> List[str]:
    return asyncio.run(MasterServerClient(base_url, timeout).discover())
