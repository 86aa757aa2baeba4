"""
core/actions/messages.py

用户可见消息 - 消息队列与消息目录

消息队列按会话保存，跨越 forward 存活，直到被页面或 JSON 信封取走。
消息目录只是一个带 %s 插值的键值表，本地化查找不在此处实现。
"""
from typing import Dict, List, Optional
import threading

# 消息种类
MESSAGE = "messages"
ERROR = "errors"

KINDS = (MESSAGE, ERROR)


# 框架内置的消息键
DEFAULT_CATALOG: Dict[str, str] = {
    "actiongate:missing_fields": "The request is missing its security token or timestamp.",
    "actiongate:token_invalid": "The security token on this request is invalid. Please reload the page and try again.",
    "actiongate:time_error": "The page you were using has expired. Please reload the page and try again.",
    "actiongate:vetoed": "A security check prevented this request from being processed.",
    "action:undefined": "The requested action (%s) is not defined in the system.",
    "action:unauthorized": "You are not authorized to perform this action.",
    "action:logged_out": "Sorry, you cannot perform this action while logged out.",
    "action:not_found": "The handler for action %s could not be found.",
}


class MessageQueue:
    """
    用户消息累加器

    分两类保存：普通消息（messages）与错误（errors）。
    drain_all() 取走并清空全部消息。

    Example:
        >>> queue = MessageQueue()
        >>> queue.add_error("oops")
        >>> queue.has_errors()
        True
        >>> queue.drain_all()
        {'messages': [], 'errors': ['oops']}
    """

    def __init__(self):
        self._registers: Dict[str, List[str]] = {kind: [] for kind in KINDS}
        self._lock = threading.Lock()

    def add(self, kind: str, text: str) -> None:
        """
        登记一条消息

        Args:
            kind: 消息种类，MESSAGE 或 ERROR
            text: 消息文本

        Raises:
            ValueError: 未知的消息种类
        """
        if kind not in self._registers:
            raise ValueError(f"Unknown message kind: {kind}")
        with self._lock:
            self._registers[kind].append(text)

    def add_message(self, text: str) -> None:
        """登记普通消息"""
        self.add(MESSAGE, text)

    def add_error(self, text: str) -> None:
        """登记错误消息"""
        self.add(ERROR, text)

    def has_errors(self) -> bool:
        """是否存在待取走的错误"""
        with self._lock:
            return bool(self._registers[ERROR])

    def count(self, kind: Optional[str] = None) -> int:
        """统计消息数量（kind 为空时统计全部）"""
        with self._lock:
            if kind is not None:
                return len(self._registers.get(kind, []))
            return sum(len(items) for items in self._registers.values())

    def peek(self) -> Dict[str, List[str]]:
        """查看全部消息但不清空"""
        with self._lock:
            return {kind: list(items) for kind, items in self._registers.items()}

    def drain_all(self) -> Dict[str, List[str]]:
        """取走并清空全部消息"""
        with self._lock:
            drained = {kind: list(items) for kind, items in self._registers.items()}
            for items in self._registers.values():
                items.clear()
        return drained


class MessageCatalog:
    """
    消息目录 - 消息键到文本的映射

    未登记的键原样返回，便于发现遗漏的文案。
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = dict(DEFAULT_CATALOG)
        if entries:
            self._entries.update(entries)

    def update(self, entries: Dict[str, str]) -> None:
        """追加或覆盖文案"""
        self._entries.update(entries)

    def translate(self, key: str, *args) -> str:
        """
        查找文案并插值

        Args:
            key: 消息键
            *args: %s 占位符参数

        Returns:
            插值后的文本
        """
        text = self._entries.get(key, key)
        if args:
            try:
                return text % args
            except (TypeError, ValueError):
                return text
        return text

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    __call__ = translate


__all__ = [
    "MESSAGE",
    "ERROR",
    "DEFAULT_CATALOG",
    "MessageQueue",
    "MessageCatalog",
]
