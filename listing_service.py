from typing import Any, List

import requests

LIGHTER_API_URL = "https://mainnet.zklighter.elliot.ai/api/v1/orderBookDetails"


class FetchError(Exception):
    """上游接口不可用或返回格式不符合预期。"""


def parse_symbols(payload: Any) -> List[str]:
    """从 orderBookDetails 响应中按原顺序取出所有交易对名称"""
    if not isinstance(payload, dict) or payload.get("code") != 200:
        raise FetchError("接口返回状态异常")
    details = payload.get("order_book_details")
    if not isinstance(details, list):
        raise FetchError("接口返回缺少 order_book_details 列表")

    symbols: List[str] = []
    for entry in details:
        symbol = entry.get("symbol") if isinstance(entry, dict) else None
        if not isinstance(symbol, str) or not symbol:
            raise FetchError(f"无法识别的条目：{entry!r}")
        symbols.append(symbol)
    return symbols


def fetch_symbols(url: str = LIGHTER_API_URL, timeout: float = 10) -> List[str]:
    """获取当前上架的全部交易对，失败时抛出 FetchError"""
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as exc:
        raise FetchError(f"请求失败：{exc}") from exc
    except ValueError as exc:
        raise FetchError("响应不是合法 JSON") from exc
    return parse_symbols(data)


class ListingSource:
    """固定接口地址与超时的快照来源，供定时检查调用。"""

    def __init__(self, url: str = LIGHTER_API_URL, timeout: float = 10) -> None:
        self.url = url
        self.timeout = timeout

    def fetch(self) -> List[str]:
        return fetch_symbols(self.url, timeout=self.timeout)
