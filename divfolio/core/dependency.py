"""
依赖注入装饰器。

职责：
- 通过 @register 注册依赖工厂（注册名 = Flow 函数参数名）；
- 通过 @dependency 在调用时自动填充值为 None 的同名参数；
- 调用方显式传入的非 None 参数不会被覆盖（测试时直接传入假价格源即可）。

使用示例：
    # 1. 注册依赖工厂（在 divfolio/core/container.py 中）
    @register("price_source")
    def get_price_source() -> PriceSource:
        return FinmindPriceSource()

    # 2. 在 Flow 函数上使用装饰器
    @dependency
    def reconcile_plan(
        plan: RecurringPlan,
        *,
        symbol: str,
        as_of: date,
        price_source: PriceSource | None = None,  # 自动注入
    ) -> ReconcileResult:
        ...

    # 3. 测试时覆盖依赖
    reconcile_plan(plan, symbol="2330", as_of=day, price_source=StaticPriceSource({...}))

注意事项：
- 注册名与参数名大小写敏感；
- 依赖注册在 divfolio/flows/__init__.py 自动触发（导入任何 flow 模块时生效）。
"""

from __future__ import annotations

import inspect
from functools import wraps
from typing import Any, Callable, TypeVar

# 依赖注册表：参数名 -> 工厂函数
_REGISTRY: dict[str, Callable[[], Any]] = {}

T = TypeVar("T")


def register(name: str) -> Callable[[Callable[[], T]], Callable[[], T]]:
    """
    装饰器：将工厂函数注册到依赖注入容器。

    Args:
        name: 注册名称，必须与目标函数的参数名完全一致。

    Returns:
        原样返回工厂函数的装饰器。
    """

    def decorator(factory_func: Callable[[], T]) -> Callable[[], T]:
        _REGISTRY[name] = factory_func
        return factory_func

    return decorator


def dependency(func: Callable[..., T]) -> Callable[..., T]:
    """
    依赖注入装饰器：自动注入函数的可选参数。

    对每个已注册的同名参数，若调用时未传值或传入 None，则调用工厂创建实例注入；
    工厂仅在需要时调用（未用到的远程客户端不会被创建）。
    """
    sig = inspect.signature(func)

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        bound_args = sig.bind_partial(*args, **kwargs)
        bound_args.apply_defaults()

        for param_name in sig.parameters:
            if param_name in _REGISTRY and bound_args.arguments.get(param_name) is None:
                bound_args.arguments[param_name] = _REGISTRY[param_name]()

        return func(*bound_args.args, **bound_args.kwargs)

    return wrapper


def get_registered_deps() -> dict[str, Callable[[], Any]]:
    """返回当前注册的所有依赖（副本，用于调试）。"""
    return _REGISTRY.copy()
