"""
core/actions/hooks.py

插件钩子总线 - 按 (topic, subtype) 分发的有序回调链

与事件总线不同，钩子回调参与控制流：
- 每个回调收到 Hook 与当前结果，返回新结果（返回 None 表示保持不变）
- 结果为 ResponseSent 时立即停止，后续回调不再执行
- halt_on_false=True 时，结果变为 False 即停止（否决链）

回调按 priority 升序执行，同优先级按注册顺序执行。
订阅 subtype="all" 的回调会参与该 topic 下每个 subtype 的分发。
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import itertools
import logging
import threading

from core.actions.results import ResponseSent

logger = logging.getLogger(__name__)

ALL = "all"
DEFAULT_PRIORITY = 500


@dataclass
class Hook:
    """
    一次钩子分发

    Attributes:
        topic: 钩子主题（如 "action"、"forward"）
        subtype: 子类型（如动作名、"system"）
        payload: 分发参数
    """

    topic: str
    subtype: str
    payload: Any = None


# 回调签名：callback(hook, result) -> 新结果或 None
HookCallback = Callable[[Hook, Any], Any]


@dataclass(order=True)
class _Registration:
    priority: int
    sequence: int
    callback: HookCallback = field(compare=False)


class HookBus:
    """
    钩子总线 - 线程安全

    Example:
        >>> hooks = HookBus()
        >>> def deny(hook, result):
        ...     return False
        >>> hooks.register("action", "blog/delete", deny)
        >>> hooks.trigger("action", "blog/delete", payload=None, default=True, halt_on_false=True)
        False
    """

    def __init__(self):
        self._registrations: Dict[Tuple[str, str], List[_Registration]] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    def register(
        self,
        topic: str,
        subtype: str,
        callback: HookCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """
        注册回调

        Args:
            topic: 钩子主题
            subtype: 子类型，ALL 表示该主题的全部子类型
            callback: 回调函数
            priority: 优先级，数值越小越先执行
        """
        key = (topic, subtype)
        with self._lock:
            registrations = self._registrations.setdefault(key, [])
            if any(r.callback == callback for r in registrations):
                return
            registrations.append(_Registration(priority, next(self._sequence), callback))
        logger.info(f"Hook {getattr(callback, '__name__', callback)!s} registered on {topic}:{subtype}")

    def unregister(self, topic: str, subtype: str, callback: HookCallback) -> bool:
        """取消注册，未注册时返回 False"""
        key = (topic, subtype)
        with self._lock:
            registrations = self._registrations.get(key, [])
            for registration in registrations:
                if registration.callback == callback:
                    registrations.remove(registration)
                    return True
        return False

    def _collect(self, topic: str, subtype: str) -> List[_Registration]:
        with self._lock:
            collected = list(self._registrations.get((topic, subtype), []))
            if subtype != ALL:
                collected.extend(self._registrations.get((topic, ALL), []))
        return sorted(collected)

    def has_handlers(self, topic: str, subtype: str = ALL) -> bool:
        return bool(self._collect(topic, subtype))

    def trigger(
        self,
        topic: str,
        subtype: str,
        payload: Any = None,
        default: Any = None,
        halt_on_false: bool = False,
    ) -> Any:
        """
        依次执行回调并返回最终结果

        Args:
            topic: 钩子主题
            subtype: 子类型
            payload: 传给每个回调的参数
            default: 初始结果
            halt_on_false: 结果为 False 时停止

        Returns:
            最终结果；可能是 ResponseSent
        """
        hook = Hook(topic=topic, subtype=subtype, payload=payload)
        result = default

        for registration in self._collect(topic, subtype):
            value = registration.callback(hook, result)
            if value is not None:
                result = value
            if isinstance(result, ResponseSent):
                logger.debug(f"Hook chain {topic}:{subtype} stopped: response sent")
                break
            if halt_on_false and result is False:
                logger.debug(f"Hook chain {topic}:{subtype} stopped: vetoed")
                break

        return result

    def clear(self, topic: Optional[str] = None) -> None:
        """
        清空注册（用于测试）

        Args:
            topic: 仅清空该主题；为空时清空全部
        """
        with self._lock:
            if topic is None:
                self._registrations.clear()
            else:
                for key in [k for k in self._registrations if k[0] == topic]:
                    del self._registrations[key]


__all__ = [
    "ALL",
    "DEFAULT_PRIORITY",
    "Hook",
    "HookCallback",
    "HookBus",
]
